from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from chat_hub.domain.entities.user import User
from chat_hub.infrastructure.db.mappers import user as mapper
from chat_hub.infrastructure.db.models.user import UserModel


class UserRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, user_id: int) -> User | None:
        model = await self._session.get(UserModel, user_id, populate_existing=True)
        return mapper.model_to_entity(model) if model else None

    async def list_all(self, *, exclude_user_id: int | None = None) -> list[User]:
        stmt = select(UserModel).order_by(UserModel.username)
        if exclude_user_id is not None:
            stmt = stmt.where(UserModel.id != exclude_user_id)
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]

    async def set_online(self, user_id: int, is_online: bool, ts: datetime) -> None:
        # users authenticated by the credential service may not have a row yet
        stmt = (
            pg_insert(UserModel)
            .values(id=user_id, username=f"user-{user_id}", is_online=is_online, last_seen=ts)
            .on_conflict_do_update(
                index_elements=[UserModel.id],
                set_={"is_online": is_online, "last_seen": ts},
            )
        )
        await self._session.execute(stmt)
