from __future__ import annotations

from chat_hub.application.exceptions import ForbiddenError, NotFoundError, ValidationError
from chat_hub.domain.entities.conversation import Conversation


def assert_conversation_access(
    user_id: int,
    conversation: Conversation | None,
) -> Conversation:
    """Raise if conversation doesn't exist or the user is not a participant."""
    if conversation is None:
        raise NotFoundError("Conversation not found")

    if not conversation.has_participant(user_id):
        raise ForbiddenError("You are not a participant of this conversation")

    return conversation


def assert_group(conversation: Conversation | None, detail: str) -> Conversation:
    if conversation is None:
        raise NotFoundError("Group not found")
    if not conversation.is_group:
        raise ValidationError(detail)
    return conversation


def assert_group_admin(conversation: Conversation, user_id: int, detail: str) -> None:
    if not conversation.is_admin(user_id):
        raise ForbiddenError(detail)


def assert_capacity(conversation: Conversation, incoming: int = 1) -> None:
    max_members = conversation.settings.max_members
    if len(conversation.participants) + incoming > max_members:
        raise ValidationError(f"Group capacity exceeded. Max members: {max_members}")
