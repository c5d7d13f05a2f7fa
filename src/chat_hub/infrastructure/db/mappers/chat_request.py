from __future__ import annotations

from chat_hub.domain.entities.chat_request import ChatRequest
from chat_hub.infrastructure.db.models.chat_request import ChatRequestModel


def model_to_entity(model: ChatRequestModel) -> ChatRequest:
    return ChatRequest(
        id=model.id,
        sender_id=model.sender_id,
        receiver_id=model.receiver_id,
        status=model.status,
        message=model.message,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def entity_to_model(entity: ChatRequest) -> ChatRequestModel:
    return ChatRequestModel(
        id=entity.id,
        sender_id=entity.sender_id,
        receiver_id=entity.receiver_id,
        status=entity.status,
        message=entity.message,
        created_at=entity.created_at,
        updated_at=entity.updated_at,
    )
