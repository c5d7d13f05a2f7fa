from __future__ import annotations

from enum import StrEnum


class ConversationType(StrEnum):
    ONE_TO_ONE = "one-to-one"
    GROUP = "group"


class GroupVisibility(StrEnum):
    PRIVATE = "private"
    PUBLIC = "public"


class MessageType(StrEnum):
    TEXT = "text"
    IMAGE = "image"
    FILE = "file"
    SYSTEM = "system"


class SystemMessageType(StrEnum):
    GROUP_CREATED = "group-created"
    MEMBER_ADDED = "member-added"
    MEMBER_REMOVED = "member-removed"
    MEMBER_LEFT = "member-left"
    ADMIN_PROMOTED = "admin-promoted"


class MembershipAction(StrEnum):
    ADDED = "member-added"
    REMOVED = "member-removed"
    LEFT = "member-left"
    JOINED = "member-joined"
    PROMOTED = "admin-promoted"

    @property
    def evicts(self) -> bool:
        return self in (MembershipAction.REMOVED, MembershipAction.LEFT)


class InvitationStatus(StrEnum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    EXPIRED = "expired"


class ChatRequestStatus(StrEnum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class UserRole(StrEnum):
    USER = "user"
    ADMIN = "admin"
