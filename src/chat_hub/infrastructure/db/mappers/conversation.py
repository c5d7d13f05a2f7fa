from __future__ import annotations

from chat_hub.domain.entities.conversation import Conversation, GroupSettings
from chat_hub.infrastructure.db.mappers import participant as participant_mapper
from chat_hub.infrastructure.db.models.conversation import ConversationModel


def model_to_entity(model: ConversationModel) -> Conversation:
    return Conversation(
        id=model.id,
        type=model.type,
        group_name=model.group_name,
        group_description=model.group_description,
        group_type=model.group_type,
        settings=GroupSettings(
            max_members=model.max_members,
            allow_member_invites=model.allow_member_invites,
            is_archived=model.is_archived,
        ),
        created_by=model.created_by,
        last_message_id=model.last_message_id,
        last_message_at=model.last_message_at,
        created_at=model.created_at,
        updated_at=model.updated_at,
        participants=tuple(
            participant_mapper.model_to_entity(p)
            for p in sorted(model.participants, key=lambda p: p.joined_at)
        ),
    )


def entity_to_model(entity: Conversation) -> ConversationModel:
    return ConversationModel(
        id=entity.id,
        type=entity.type,
        group_name=entity.group_name,
        group_description=entity.group_description,
        group_type=entity.group_type,
        max_members=entity.settings.max_members,
        allow_member_invites=entity.settings.allow_member_invites,
        is_archived=entity.settings.is_archived,
        created_by=entity.created_by,
        last_message_id=entity.last_message_id,
        last_message_at=entity.last_message_at,
        created_at=entity.created_at,
        updated_at=entity.updated_at,
        participants=[participant_mapper.entity_to_model(p) for p in entity.participants],
    )
