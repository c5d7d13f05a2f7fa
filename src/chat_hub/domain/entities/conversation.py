from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from chat_hub.domain.entities.participant import Participant
from chat_hub.domain.value_objects.enums import ConversationType, GroupVisibility


@dataclass(frozen=True, slots=True)
class GroupSettings:
    max_members: int = 500
    allow_member_invites: bool = False
    is_archived: bool = False


@dataclass(frozen=True, slots=True)
class Conversation:
    id: UUID
    type: str
    group_name: str | None
    group_description: str | None
    group_type: str
    settings: GroupSettings
    created_by: int | None
    last_message_id: UUID | None
    last_message_at: datetime | None
    created_at: datetime
    updated_at: datetime
    participants: tuple[Participant, ...] = field(default_factory=tuple)

    @property
    def is_group(self) -> bool:
        return self.type == ConversationType.GROUP

    @property
    def is_public(self) -> bool:
        return self.group_type == GroupVisibility.PUBLIC

    @property
    def participant_ids(self) -> list[int]:
        return [p.user_id for p in self.participants]

    @property
    def admin_ids(self) -> list[int]:
        return [p.user_id for p in self.participants if p.is_admin]

    def participant(self, user_id: int) -> Participant | None:
        for p in self.participants:
            if p.user_id == user_id:
                return p
        return None

    def has_participant(self, user_id: int) -> bool:
        return self.participant(user_id) is not None

    def is_admin(self, user_id: int) -> bool:
        p = self.participant(user_id)
        return p is not None and p.is_admin

    def unread_for(self, user_id: int) -> int:
        p = self.participant(user_id)
        return p.unread_count if p else 0
