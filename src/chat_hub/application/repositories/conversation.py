from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import UUID

from chat_hub.domain.entities.conversation import Conversation


class ConversationReader(Protocol):
    async def get_by_id(self, conversation_id: UUID) -> Conversation | None: ...

    async def find_one_to_one(self, user_id: int, other_user_id: int) -> Conversation | None:
        """Find the one-to-one conversation shared by exactly these two users."""
        ...

    async def list_for_user(self, user_id: int) -> list[Conversation]: ...

    async def list_public_groups(
        self,
        exclude_user_id: int,
        *,
        search: str | None = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[Conversation], int]:
        """Return (page, total) of public, non-archived groups the user is not in."""
        ...


class ConversationWriter(Protocol):
    async def create(self, conversation: Conversation) -> Conversation:
        """Insert the conversation together with its participant rows."""
        ...

    async def update_details(
        self,
        conversation_id: UUID,
        *,
        group_name: str | None = None,
        group_description: str | None = None,
    ) -> None: ...

    async def touch_last_message(
        self, conversation_id: UUID, message_id: UUID | None, ts: datetime
    ) -> None: ...

    async def delete(self, conversation_id: UUID) -> None: ...
