from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter

from chat_hub.api.deps import CurrentPrincipal, UoWDep
from chat_hub.api.v1.schemas.chat_request import (
    ChatRequestAcceptedResponse,
    ChatRequestResponse,
    SendChatRequestRequest,
)
from chat_hub.api.v1.schemas.conversation import ConversationResponse
from chat_hub.services import chat_request_service

# Persistence only. Clients relay the matching chat-request-* socket events.
router = APIRouter(prefix="/api/v1/chat/chat-requests", tags=["chat-requests"])


@router.post("", response_model=ChatRequestResponse, status_code=201)
async def send_chat_request(
    body: SendChatRequestRequest,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> ChatRequestResponse:
    req = await chat_request_service.send_chat_request(
        body.receiver_id, principal, uow, message=body.message,
    )
    return ChatRequestResponse.model_validate(req)


@router.get("/pending", response_model=list[ChatRequestResponse])
async def list_pending(principal: CurrentPrincipal, uow: UoWDep) -> list[ChatRequestResponse]:
    reqs = await chat_request_service.list_pending_requests(principal, uow)
    return [ChatRequestResponse.model_validate(r) for r in reqs]


@router.get("/sent", response_model=list[ChatRequestResponse])
async def list_sent(principal: CurrentPrincipal, uow: UoWDep) -> list[ChatRequestResponse]:
    reqs = await chat_request_service.list_sent_requests(principal, uow)
    return [ChatRequestResponse.model_validate(r) for r in reqs]


@router.put("/{request_id}/accept", response_model=ChatRequestAcceptedResponse)
async def accept_chat_request(
    request_id: UUID,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> ChatRequestAcceptedResponse:
    accepted = await chat_request_service.accept_chat_request(request_id, principal, uow)
    return ChatRequestAcceptedResponse(
        chat_request=ChatRequestResponse.model_validate(accepted.chat_request),
        conversation=ConversationResponse.from_entity(accepted.conversation, principal.user_id),
    )


@router.put("/{request_id}/reject", response_model=ChatRequestResponse)
async def reject_chat_request(
    request_id: UUID,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> ChatRequestResponse:
    req = await chat_request_service.reject_chat_request(request_id, principal, uow)
    return ChatRequestResponse.model_validate(req)


@router.delete("/{request_id}", response_model=ChatRequestResponse)
async def cancel_chat_request(
    request_id: UUID,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> ChatRequestResponse:
    req = await chat_request_service.cancel_chat_request(request_id, principal, uow)
    return ChatRequestResponse.model_validate(req)
