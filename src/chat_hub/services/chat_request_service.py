from __future__ import annotations

import dataclasses
import uuid
from datetime import datetime, timezone

from chat_hub.application.dto.chat_request import ChatRequestAccepted
from chat_hub.application.dto.principal import Principal
from chat_hub.application.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from chat_hub.application.uow import UnitOfWork
from chat_hub.domain.entities.chat_request import ChatRequest
from chat_hub.domain.value_objects.enums import ChatRequestStatus
from chat_hub.services import conversation_service


async def send_chat_request(
    receiver_id: int,
    principal: Principal,
    uow: UnitOfWork,
    message: str | None = None,
) -> ChatRequest:
    if receiver_id == principal.user_id:
        raise ValidationError("Cannot send a chat request to yourself")
    if await uow.users.get_by_id(receiver_id) is None:
        raise NotFoundError("User not found")

    if await uow.chat_requests.find_pending(principal.user_id, receiver_id) is not None:
        raise ConflictError("Chat request already sent")
    if await uow.chat_requests.find_pending(receiver_id, principal.user_id) is not None:
        raise ConflictError("This user has already sent you a chat request")

    now = datetime.now(timezone.utc)
    chat_request = await uow.chat_requests.create(
        ChatRequest(
            id=uuid.uuid4(),
            sender_id=principal.user_id,
            receiver_id=receiver_id,
            status=ChatRequestStatus.PENDING.value,
            message=message.strip() if message else None,
            created_at=now,
            updated_at=now,
        )
    )
    await uow.commit()
    return chat_request


async def _transition(
    request_id: uuid.UUID,
    to_status: ChatRequestStatus,
    uow: UnitOfWork,
) -> None:
    moved = await uow.chat_requests.transition(
        request_id,
        from_status=ChatRequestStatus.PENDING,
        to_status=to_status,
    )
    if not moved:
        raise ValidationError("Chat request is no longer pending")


async def _get_pending(request_id: uuid.UUID, uow: UnitOfWork) -> ChatRequest:
    chat_request = await uow.chat_requests.get_by_id(request_id)
    if chat_request is None:
        raise NotFoundError("Chat request not found")
    if chat_request.status != ChatRequestStatus.PENDING:
        raise ValidationError("Chat request is no longer pending")
    return chat_request


async def accept_chat_request(
    request_id: uuid.UUID,
    principal: Principal,
    uow: UnitOfWork,
) -> ChatRequestAccepted:
    """Accept a pending request and open (or reuse) the one-to-one conversation."""
    chat_request = await _get_pending(request_id, uow)
    if chat_request.receiver_id != principal.user_id:
        raise ForbiddenError("Only the receiver can accept this request")

    await _transition(request_id, ChatRequestStatus.ACCEPTED, uow)
    # commits the transition together with a newly created conversation
    conversation = await conversation_service.get_or_create_one_to_one(
        principal, chat_request.sender_id, uow,
    )
    await uow.commit()
    return ChatRequestAccepted(
        chat_request=dataclasses.replace(chat_request, status=ChatRequestStatus.ACCEPTED.value),
        conversation=conversation,
    )


async def reject_chat_request(
    request_id: uuid.UUID,
    principal: Principal,
    uow: UnitOfWork,
) -> ChatRequest:
    chat_request = await _get_pending(request_id, uow)
    if chat_request.receiver_id != principal.user_id:
        raise ForbiddenError("Only the receiver can reject this request")

    await _transition(request_id, ChatRequestStatus.REJECTED, uow)
    await uow.commit()
    return dataclasses.replace(chat_request, status=ChatRequestStatus.REJECTED.value)


async def cancel_chat_request(
    request_id: uuid.UUID,
    principal: Principal,
    uow: UnitOfWork,
) -> ChatRequest:
    chat_request = await _get_pending(request_id, uow)
    if chat_request.sender_id != principal.user_id:
        raise ForbiddenError("Only the sender can cancel this request")

    await _transition(request_id, ChatRequestStatus.CANCELLED, uow)
    await uow.commit()
    return dataclasses.replace(chat_request, status=ChatRequestStatus.CANCELLED.value)


async def list_pending_requests(principal: Principal, uow: UnitOfWork) -> list[ChatRequest]:
    return await uow.chat_requests.list_pending_for_receiver(principal.user_id)


async def list_sent_requests(principal: Principal, uow: UnitOfWork) -> list[ChatRequest]:
    return await uow.chat_requests.list_pending_from_sender(principal.user_id)
