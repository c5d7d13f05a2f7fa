from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from chat_hub.application.dto.principal import Principal
from chat_hub.application.exceptions import ForbiddenError, NotFoundError, ValidationError
from chat_hub.application.policies.permissions import assert_conversation_access
from chat_hub.application.uow import UnitOfWork
from chat_hub.domain.entities.conversation import Conversation
from chat_hub.domain.entities.message import Message
from chat_hub.domain.value_objects.enums import MessageType, SystemMessageType


async def send_message(
    conversation_id: uuid.UUID,
    principal: Principal,
    content: str,
    msg_type: MessageType,
    uow: UnitOfWork,
) -> tuple[Message, Conversation]:
    """Persist a user message.

    Returns the message together with the conversation it was written to so
    the caller can fan it out to the participants without another lookup.
    """
    if msg_type == MessageType.SYSTEM:
        raise ValidationError("System messages cannot be sent by users")
    content = (content or "").strip()
    if not content:
        raise ValidationError("Message content is required")

    conversation = assert_conversation_access(
        principal.user_id, await uow.conversations.get_by_id(conversation_id),
    )

    msg = Message(
        id=uuid.uuid4(),
        conversation_id=conversation_id,
        sender_id=principal.user_id,
        type=msg_type.value,
        content=content,
        system_type=None,
        metadata=None,
        created_at=datetime.now(timezone.utc),
        read_by=(principal.user_id,),
    )
    msg = await uow.messages_w.create(msg)
    await uow.conversations_w.touch_last_message(conversation_id, msg.id, msg.created_at)
    await uow.participants_w.increment_unread(conversation_id, except_user_id=principal.user_id)
    await uow.commit()
    return msg, conversation


async def create_system_message(
    conversation_id: uuid.UUID,
    system_type: SystemMessageType,
    content: str,
    metadata: dict[str, Any] | None,
    uow: UnitOfWork,
) -> Message:
    """Write a system message inside the caller's unit of work. Does not commit."""
    msg = Message(
        id=uuid.uuid4(),
        conversation_id=conversation_id,
        sender_id=None,
        type=MessageType.SYSTEM.value,
        content=content,
        system_type=system_type.value,
        metadata=metadata,
        created_at=datetime.now(timezone.utc),
    )
    msg = await uow.messages_w.create(msg)
    await uow.conversations_w.touch_last_message(conversation_id, msg.id, msg.created_at)
    return msg


async def list_messages(
    conversation_id: uuid.UUID,
    principal: Principal,
    cursor: str | None,
    limit: int,
    uow: UnitOfWork,
) -> list[Message]:
    conversation = assert_conversation_access(
        principal.user_id, await uow.conversations.get_by_id(conversation_id),
    )
    # members only see history from the moment they joined
    me = conversation.participant(principal.user_id)
    since = me.joined_at if me is not None and conversation.is_group else None
    return await uow.messages.list_messages(
        conversation_id, since=since, cursor=cursor, limit=limit,
    )


async def delete_message(
    message_id: uuid.UUID,
    principal: Principal,
    uow: UnitOfWork,
) -> Message:
    msg = await uow.messages.get_by_id(message_id)
    if msg is None:
        raise NotFoundError("Message not found")
    if msg.sender_id != principal.user_id:
        raise ForbiddenError("You can only delete your own messages")

    await uow.messages_w.delete(message_id)
    await uow.commit()
    return msg
