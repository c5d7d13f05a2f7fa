from __future__ import annotations

from datetime import datetime, timezone

from chat_hub.application.dto.principal import Principal
from chat_hub.application.exceptions import NotFoundError
from chat_hub.application.uow import UnitOfWork
from chat_hub.domain.entities.user import User


async def set_online_status(user_id: int, is_online: bool, uow: UnitOfWork) -> None:
    """Idempotent presence write; also stamps ``last_seen``."""
    await uow.users.set_online(user_id, is_online, datetime.now(timezone.utc))
    await uow.commit()


async def get_user(user_id: int, uow: UnitOfWork) -> User:
    user = await uow.users.get_by_id(user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


async def list_users(principal: Principal, uow: UnitOfWork) -> list[User]:
    return await uow.users.list_all(exclude_user_id=principal.user_id)
