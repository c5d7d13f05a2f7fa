from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import Field

from chat_hub.api.v1.schemas.common import CamelModel
from chat_hub.domain.entities.message import Message
from chat_hub.domain.value_objects.enums import MessageType


class SendMessageRequest(CamelModel):
    content: str = Field(min_length=1, max_length=5000)
    message_type: MessageType = MessageType.TEXT


class MessageResponse(CamelModel):
    id: UUID
    conversation_id: UUID
    sender_id: int | None
    content: str
    message_type: str
    system_message_type: str | None = None
    metadata: dict[str, Any] | None = None
    is_read: bool = False
    read_by: list[int] = []
    created_at: datetime

    @classmethod
    def from_entity(cls, msg: Message) -> MessageResponse:
        return cls(
            id=msg.id,
            conversation_id=msg.conversation_id,
            sender_id=msg.sender_id,
            content=msg.content,
            message_type=msg.type,
            system_message_type=msg.system_type,
            metadata=msg.metadata,
            is_read=msg.is_read,
            read_by=list(msg.read_by),
            created_at=msg.created_at,
        )
