from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Query, Response, status

from chat_hub.api.deps import CurrentPrincipal, RealtimeDep, UoWDep
from chat_hub.api.v1.schemas.common import PaginatedResponse
from chat_hub.api.v1.schemas.events import MessagesRead, ServerEvent
from chat_hub.api.v1.schemas.message import MessageResponse, SendMessageRequest
from chat_hub.infrastructure.db.repositories._cursor import encode_cursor
from chat_hub.realtime.rooms import conversation_room
from chat_hub.services import message_service, read_state_service

router = APIRouter(prefix="/api/v1/chat", tags=["messages"])


@router.get(
    "/conversations/{conversation_id}/messages",
    response_model=PaginatedResponse[MessageResponse],
)
async def list_messages(
    conversation_id: UUID,
    principal: CurrentPrincipal,
    uow: UoWDep,
    cursor: str | None = Query(None),
    limit: int = Query(50, ge=1, le=200),
) -> PaginatedResponse[MessageResponse]:
    messages = await message_service.list_messages(
        conversation_id, principal, cursor, limit, uow,
    )
    next_cursor = (
        encode_cursor(messages[-1].created_at, messages[-1].id)
        if len(messages) == limit else None
    )
    return PaginatedResponse[MessageResponse](
        items=[MessageResponse.from_entity(m) for m in messages],
        next_cursor=next_cursor,
    )


@router.post(
    "/conversations/{conversation_id}/messages",
    response_model=MessageResponse,
    status_code=201,
)
async def send_message(
    conversation_id: UUID,
    body: SendMessageRequest,
    principal: CurrentPrincipal,
    uow: UoWDep,
    realtime: RealtimeDep,
) -> MessageResponse:
    msg, conversation = await message_service.send_message(
        conversation_id, principal, body.content, body.message_type, uow,
    )
    await realtime.notifier.deliver_message(msg, conversation.participant_ids)
    return MessageResponse.from_entity(msg)


@router.put("/conversations/{conversation_id}/read", status_code=status.HTTP_204_NO_CONTENT)
async def mark_read(
    conversation_id: UUID,
    principal: CurrentPrincipal,
    uow: UoWDep,
    realtime: RealtimeDep,
) -> Response:
    await read_state_service.mark_read(conversation_id, principal, uow)
    await realtime.transport.emit_to_room(
        conversation_room(conversation_id),
        ServerEvent.MESSAGES_READ,
        MessagesRead(conversation_id=conversation_id, user_id=principal.user_id),
        skip=realtime.presence.handles_for(principal.user_id),
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/messages/{message_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_message(
    message_id: UUID,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> Response:
    await message_service.delete_message(message_id, principal, uow)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
