from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import Field

from chat_hub.api.v1.schemas.common import CamelModel
from chat_hub.api.v1.schemas.conversation import ConversationResponse


class SendChatRequestRequest(CamelModel):
    receiver_id: int
    message: str | None = Field(default=None, max_length=500)


class ChatRequestResponse(CamelModel):
    id: UUID
    sender_id: int
    receiver_id: int
    status: str
    message: str | None
    created_at: datetime
    updated_at: datetime


class ChatRequestAcceptedResponse(CamelModel):
    chat_request: ChatRequestResponse
    conversation: ConversationResponse
