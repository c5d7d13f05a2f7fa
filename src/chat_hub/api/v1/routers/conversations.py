from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Query, Response, status

from chat_hub.api.deps import CurrentPrincipal, RealtimeDep, UoWDep
from chat_hub.api.v1.schemas.conversation import (
    ConversationResponse,
    CreateGroupRequest,
    OneToOneRequest,
    PublicGroupsResponse,
    UpdateGroupDetailsRequest,
    UserIdRequest,
)
from chat_hub.application.dto.conversation import CreateGroupDTO, GroupSettingsDTO
from chat_hub.services import conversation_service

router = APIRouter(prefix="/api/v1/chat/conversations", tags=["conversations"])


@router.post("/one-to-one", response_model=ConversationResponse)
async def get_or_create_one_to_one(
    body: OneToOneRequest,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> ConversationResponse:
    conv = await conversation_service.get_or_create_one_to_one(principal, body.participant_id, uow)
    return ConversationResponse.from_entity(conv, principal.user_id)


@router.post("/group", response_model=ConversationResponse, status_code=201)
async def create_group(
    body: CreateGroupRequest,
    principal: CurrentPrincipal,
    uow: UoWDep,
    realtime: RealtimeDep,
) -> ConversationResponse:
    created = await conversation_service.create_group(
        principal,
        CreateGroupDTO(
            group_name=body.group_name,
            participant_ids=body.participant_ids,
            group_description=body.group_description,
            group_type=body.group_type,
            settings=(
                GroupSettingsDTO(
                    max_members=body.settings.max_members,
                    allow_member_invites=body.settings.allow_member_invites,
                )
                if body.settings else None
            ),
        ),
        uow,
    )
    await realtime.notifier.group_created(created.conversation, principal.user_id)
    await realtime.notifier.deliver_message(
        created.system_message, created.conversation.participant_ids,
    )
    return ConversationResponse.from_entity(created.conversation, principal.user_id)


@router.get("", response_model=list[ConversationResponse])
async def list_conversations(
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> list[ConversationResponse]:
    convs = await conversation_service.list_user_conversations(principal, uow)
    return [ConversationResponse.from_entity(c, principal.user_id) for c in convs]


@router.get("/public", response_model=PublicGroupsResponse)
async def list_public_groups(
    principal: CurrentPrincipal,
    uow: UoWDep,
    search: str | None = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
) -> PublicGroupsResponse:
    result = await conversation_service.list_public_groups(
        principal, uow, search=search, page=page, limit=limit,
    )
    return PublicGroupsResponse(
        groups=[ConversationResponse.from_entity(c) for c in result.groups],
        total=result.total,
        page=result.page,
        limit=result.limit,
        pages=result.pages,
    )


@router.get("/{conversation_id}", response_model=ConversationResponse)
async def get_conversation(
    conversation_id: UUID,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> ConversationResponse:
    conv = await conversation_service.get_conversation(conversation_id, principal, uow)
    return ConversationResponse.from_entity(conv, principal.user_id)


@router.put("/{conversation_id}/details", response_model=ConversationResponse)
async def update_group_details(
    conversation_id: UUID,
    body: UpdateGroupDetailsRequest,
    principal: CurrentPrincipal,
    uow: UoWDep,
    realtime: RealtimeDep,
) -> ConversationResponse:
    conv = await conversation_service.update_group_details(
        conversation_id,
        principal,
        uow,
        group_name=body.group_name,
        group_description=body.group_description,
    )
    await realtime.notifier.group_updated(conv)
    return ConversationResponse.from_entity(conv, principal.user_id)


@router.put("/{conversation_id}/admins", response_model=ConversationResponse)
async def promote_to_admin(
    conversation_id: UUID,
    body: UserIdRequest,
    principal: CurrentPrincipal,
    uow: UoWDep,
    realtime: RealtimeDep,
) -> ConversationResponse:
    change = await conversation_service.promote_to_admin(
        conversation_id, body.user_id, principal, uow,
    )
    await realtime.notifier.membership_changed(change)
    return ConversationResponse.from_entity(change.conversation, principal.user_id)


@router.post("/{conversation_id}/participants", response_model=ConversationResponse)
async def add_participant(
    conversation_id: UUID,
    body: UserIdRequest,
    principal: CurrentPrincipal,
    uow: UoWDep,
    realtime: RealtimeDep,
) -> ConversationResponse:
    change = await conversation_service.add_participant(
        conversation_id, body.user_id, principal, uow,
    )
    await realtime.notifier.membership_changed(change)
    return ConversationResponse.from_entity(change.conversation, principal.user_id)


@router.delete("/{conversation_id}/participants/{user_id}", response_model=ConversationResponse)
async def remove_participant(
    conversation_id: UUID,
    user_id: int,
    principal: CurrentPrincipal,
    uow: UoWDep,
    realtime: RealtimeDep,
) -> ConversationResponse:
    change = await conversation_service.remove_participant(
        conversation_id, user_id, principal, uow,
    )
    await realtime.notifier.membership_changed(change)
    return ConversationResponse.from_entity(change.conversation, principal.user_id)


@router.post("/{conversation_id}/leave", status_code=status.HTTP_204_NO_CONTENT)
async def leave_group(
    conversation_id: UUID,
    principal: CurrentPrincipal,
    uow: UoWDep,
    realtime: RealtimeDep,
) -> Response:
    change = await conversation_service.leave_group(conversation_id, principal, uow)
    await realtime.notifier.membership_changed(change)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{conversation_id}/join", response_model=ConversationResponse)
async def join_public_group(
    conversation_id: UUID,
    principal: CurrentPrincipal,
    uow: UoWDep,
    realtime: RealtimeDep,
) -> ConversationResponse:
    change = await conversation_service.join_public_group(conversation_id, principal, uow)
    await realtime.notifier.membership_changed(change)
    return ConversationResponse.from_entity(change.conversation, principal.user_id)


@router.delete("/{conversation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_conversation(
    conversation_id: UUID,
    principal: CurrentPrincipal,
    uow: UoWDep,
    realtime: RealtimeDep,
) -> Response:
    conv = await conversation_service.delete_conversation(conversation_id, principal, uow)
    await realtime.notifier.conversation_deleted(conv)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
