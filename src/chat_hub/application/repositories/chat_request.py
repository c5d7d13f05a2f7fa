from __future__ import annotations

from typing import Protocol
from uuid import UUID

from chat_hub.domain.entities.chat_request import ChatRequest


class ChatRequestRepository(Protocol):
    async def get_by_id(self, request_id: UUID) -> ChatRequest | None: ...

    async def find_pending(self, sender_id: int, receiver_id: int) -> ChatRequest | None: ...

    async def create(self, chat_request: ChatRequest) -> ChatRequest: ...

    async def transition(self, request_id: UUID, *, from_status: str, to_status: str) -> bool: ...

    async def list_pending_for_receiver(self, user_id: int) -> list[ChatRequest]: ...

    async def list_pending_from_sender(self, user_id: int) -> list[ChatRequest]: ...
