from __future__ import annotations

from chat_hub.domain.entities.message import Message
from chat_hub.infrastructure.db.models.message import MessageModel


def model_to_entity(model: MessageModel) -> Message:
    return Message(
        id=model.id,
        conversation_id=model.conversation_id,
        sender_id=model.sender_id,
        type=model.type,
        content=model.content,
        system_type=model.system_type,
        metadata=model.meta,
        created_at=model.created_at,
        read_by=tuple(model.read_by or ()),
    )


def entity_to_model(entity: Message) -> MessageModel:
    return MessageModel(
        id=entity.id,
        conversation_id=entity.conversation_id,
        sender_id=entity.sender_id,
        type=entity.type,
        content=entity.content,
        system_type=entity.system_type,
        meta=entity.metadata,
        created_at=entity.created_at,
        read_by=list(entity.read_by),
    )
