from __future__ import annotations

from typing import Protocol
from uuid import UUID

from chat_hub.domain.entities.participant import Participant


class ParticipantReader(Protocol):
    async def is_participant(self, conversation_id: UUID, user_id: int) -> bool: ...


class ParticipantWriter(Protocol):
    async def add(self, participant: Participant) -> bool:
        """Insert a membership row. Return False if the user is already a member."""
        ...

    async def remove(self, conversation_id: UUID, user_id: int) -> bool: ...

    async def set_admin(self, conversation_id: UUID, user_id: int, is_admin: bool) -> None: ...

    async def increment_unread(self, conversation_id: UUID, *, except_user_id: int | None) -> None:
        """Atomically add one to every member's unread counter except ``except_user_id``."""
        ...

    async def reset_unread(self, conversation_id: UUID, user_id: int) -> None: ...
