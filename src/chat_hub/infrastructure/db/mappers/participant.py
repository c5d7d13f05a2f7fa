from __future__ import annotations

from chat_hub.domain.entities.participant import Participant
from chat_hub.infrastructure.db.models.participant import ParticipantModel


def model_to_entity(model: ParticipantModel) -> Participant:
    return Participant(
        conversation_id=model.conversation_id,
        user_id=model.user_id,
        is_admin=model.is_admin,
        unread_count=model.unread_count,
        joined_at=model.joined_at,
    )


def entity_to_model(entity: Participant) -> ParticipantModel:
    return ParticipantModel(
        conversation_id=entity.conversation_id,
        user_id=entity.user_id,
        is_admin=entity.is_admin,
        unread_count=entity.unread_count,
        joined_at=entity.joined_at,
    )
