from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import Field

from chat_hub.api.v1.schemas.common import CamelModel
from chat_hub.domain.entities.conversation import Conversation
from chat_hub.domain.value_objects.enums import GroupVisibility


class OneToOneRequest(CamelModel):
    participant_id: int


class GroupSettingsSchema(CamelModel):
    max_members: int | None = Field(default=None, ge=2)
    allow_member_invites: bool = False


class CreateGroupRequest(CamelModel):
    group_name: str = Field(min_length=1, max_length=100)
    participant_ids: list[int] = []
    group_description: str | None = Field(default=None, max_length=500)
    group_type: GroupVisibility = GroupVisibility.PRIVATE
    settings: GroupSettingsSchema | None = None


class UpdateGroupDetailsRequest(CamelModel):
    group_name: str | None = Field(default=None, max_length=100)
    group_description: str | None = Field(default=None, max_length=500)


class UserIdRequest(CamelModel):
    user_id: int


class ParticipantResponse(CamelModel):
    user_id: int
    is_admin: bool
    unread_count: int
    joined_at: datetime


class GroupSettingsResponse(CamelModel):
    max_members: int
    allow_member_invites: bool
    is_archived: bool


class ConversationResponse(CamelModel):
    id: UUID
    type: str
    group_name: str | None
    group_description: str | None
    group_type: str
    settings: GroupSettingsResponse
    created_by: int | None
    admins: list[int]
    participants: list[ParticipantResponse]
    last_message_id: UUID | None
    last_message_at: datetime | None
    unread_count: int = 0
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, conv: Conversation, viewer_id: int | None = None) -> ConversationResponse:
        """``unread_count`` is the viewer's counter; zero when there is no viewer."""
        return cls(
            id=conv.id,
            type=conv.type,
            group_name=conv.group_name,
            group_description=conv.group_description,
            group_type=conv.group_type,
            settings=GroupSettingsResponse.model_validate(conv.settings),
            created_by=conv.created_by,
            admins=conv.admin_ids,
            participants=[ParticipantResponse.model_validate(p) for p in conv.participants],
            last_message_id=conv.last_message_id,
            last_message_at=conv.last_message_at,
            unread_count=conv.unread_for(viewer_id) if viewer_id is not None else 0,
            created_at=conv.created_at,
            updated_at=conv.updated_at,
        )


class PublicGroupsResponse(CamelModel):
    groups: list[ConversationResponse]
    total: int
    page: int
    limit: int
    pages: int
