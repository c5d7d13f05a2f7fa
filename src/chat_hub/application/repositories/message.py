from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import UUID

from chat_hub.domain.entities.message import Message


class MessageReader(Protocol):
    async def get_by_id(self, message_id: UUID) -> Message | None: ...

    async def list_messages(
        self,
        conversation_id: UUID,
        *,
        since: datetime | None = None,
        cursor: str | None = None,
        limit: int = 50,
    ) -> list[Message]: ...


class MessageWriter(Protocol):
    async def create(self, message: Message) -> Message: ...

    async def delete(self, message_id: UUID) -> None: ...

    async def mark_read(self, conversation_id: UUID, reader_id: int) -> int:
        """Atomically add ``reader_id`` to read receipts of others' messages. Return rows touched."""
        ...
