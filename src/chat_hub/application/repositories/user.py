from __future__ import annotations

from datetime import datetime
from typing import Protocol

from chat_hub.domain.entities.user import User


class UserRepository(Protocol):
    async def get_by_id(self, user_id: int) -> User | None: ...

    async def list_all(self, *, exclude_user_id: int | None = None) -> list[User]: ...

    async def set_online(self, user_id: int, is_online: bool, ts: datetime) -> None:
        """Upsert presence columns for the user."""
        ...
