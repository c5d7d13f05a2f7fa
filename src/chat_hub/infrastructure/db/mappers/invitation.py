from __future__ import annotations

from chat_hub.domain.entities.invitation import Invitation
from chat_hub.infrastructure.db.models.invitation import InvitationModel


def model_to_entity(model: InvitationModel) -> Invitation:
    return Invitation(
        id=model.id,
        conversation_id=model.conversation_id,
        invited_by=model.invited_by,
        invited_user=model.invited_user,
        status=model.status,
        expires_at=model.expires_at,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def entity_to_model(entity: Invitation) -> InvitationModel:
    return InvitationModel(
        id=entity.id,
        conversation_id=entity.conversation_id,
        invited_by=entity.invited_by,
        invited_user=entity.invited_user,
        status=entity.status,
        expires_at=entity.expires_at,
        created_at=entity.created_at,
        updated_at=entity.updated_at,
    )
