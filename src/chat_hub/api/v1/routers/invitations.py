from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter

from chat_hub.api.deps import CurrentPrincipal, RealtimeDep, UoWDep
from chat_hub.api.v1.schemas.conversation import ConversationResponse
from chat_hub.api.v1.schemas.events import InvitationReply, ServerEvent
from chat_hub.api.v1.schemas.invitation import InvitationResponse, InviteRequest
from chat_hub.services import invitation_service

router = APIRouter(prefix="/api/v1/chat", tags=["invitations"])


@router.post(
    "/conversations/{conversation_id}/invitations",
    response_model=list[InvitationResponse],
    status_code=201,
)
async def invite_to_group(
    conversation_id: UUID,
    body: InviteRequest,
    principal: CurrentPrincipal,
    uow: UoWDep,
    realtime: RealtimeDep,
) -> list[InvitationResponse]:
    invitations = await invitation_service.invite_to_group(
        conversation_id, body.user_ids, principal, uow,
    )
    views = [InvitationResponse.model_validate(inv) for inv in invitations]
    for view in views:
        await realtime.notifier.route_to_user(view.invited_user, ServerEvent.GROUP_INVITATION, view)
    return views


@router.get("/invitations/pending", response_model=list[InvitationResponse])
async def list_pending_invitations(
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> list[InvitationResponse]:
    invitations = await invitation_service.list_pending_invitations(principal, uow)
    return [InvitationResponse.model_validate(inv) for inv in invitations]


@router.post("/invitations/{invitation_id}/accept", response_model=ConversationResponse)
async def accept_invitation(
    invitation_id: UUID,
    principal: CurrentPrincipal,
    uow: UoWDep,
    realtime: RealtimeDep,
) -> ConversationResponse:
    accepted = await invitation_service.accept_invitation(invitation_id, principal, uow)
    await realtime.notifier.route_to_user(
        accepted.invitation.invited_by,
        ServerEvent.INVITATION_ACCEPTED,
        InvitationReply(
            invitation_id=invitation_id,
            conversation_id=accepted.invitation.conversation_id,
            user_id=principal.user_id,
        ),
    )
    await realtime.notifier.membership_changed(accepted.change)
    return ConversationResponse.from_entity(accepted.change.conversation, principal.user_id)


@router.post("/invitations/{invitation_id}/decline", response_model=InvitationResponse)
async def decline_invitation(
    invitation_id: UUID,
    principal: CurrentPrincipal,
    uow: UoWDep,
    realtime: RealtimeDep,
) -> InvitationResponse:
    invitation = await invitation_service.decline_invitation(invitation_id, principal, uow)
    await realtime.notifier.route_to_user(
        invitation.invited_by,
        ServerEvent.INVITATION_DECLINED,
        InvitationReply(
            invitation_id=invitation_id,
            conversation_id=invitation.conversation_id,
            user_id=principal.user_id,
        ),
    )
    return InvitationResponse.model_validate(invitation)
