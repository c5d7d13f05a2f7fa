from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from chat_hub.domain.entities.conversation import Conversation
from chat_hub.domain.entities.invitation import Invitation
from chat_hub.domain.entities.message import Message
from chat_hub.domain.value_objects.enums import GroupVisibility, MembershipAction


@dataclass(frozen=True, slots=True)
class GroupSettingsDTO:
    max_members: int | None = None
    allow_member_invites: bool = False


@dataclass(frozen=True, slots=True)
class CreateGroupDTO:
    group_name: str
    participant_ids: list[int]
    group_description: str | None = None
    group_type: GroupVisibility = GroupVisibility.PRIVATE
    settings: GroupSettingsDTO | None = None


@dataclass(frozen=True, slots=True)
class GroupCreated:
    conversation: Conversation
    system_message: Message


@dataclass(frozen=True, slots=True)
class MembershipChange:
    """Result of a membership or role mutation, used for realtime fan-out.

    ``conversation`` is the state after the change. ``user_id`` is the member
    the change is about (added, removed, promoted, ...).
    """

    conversation: Conversation
    action: MembershipAction
    user_id: int
    actor_id: int
    system_message: Message | None = None

    @property
    def conversation_id(self) -> UUID:
        return self.conversation.id


@dataclass(frozen=True, slots=True)
class InvitationAccepted:
    invitation: Invitation
    change: MembershipChange


@dataclass(frozen=True, slots=True)
class PublicGroupsPage:
    groups: list[Conversation]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        return -(-self.total // self.limit) if self.limit else 0
