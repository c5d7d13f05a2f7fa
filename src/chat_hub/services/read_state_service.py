from __future__ import annotations

import uuid

from chat_hub.application.dto.principal import Principal
from chat_hub.application.policies.permissions import assert_conversation_access
from chat_hub.application.uow import UnitOfWork


async def mark_read(
    conversation_id: uuid.UUID,
    principal: Principal,
    uow: UnitOfWork,
) -> int:
    """Mark every message from other senders as read by the caller.

    Both updates are single statements, so concurrent calls for the same
    reader converge. Returns the number of messages newly marked.
    """
    assert_conversation_access(
        principal.user_id, await uow.conversations.get_by_id(conversation_id),
    )
    marked = await uow.messages_w.mark_read(conversation_id, principal.user_id)
    await uow.participants_w.reset_unread(conversation_id, principal.user_id)
    await uow.commit()
    return marked
