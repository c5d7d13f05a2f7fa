from __future__ import annotations

from fastapi import APIRouter

from chat_hub.api.deps import CurrentPrincipal, RealtimeDep, UoWDep
from chat_hub.api.v1.schemas.user import UserResponse
from chat_hub.services import user_service

router = APIRouter(prefix="/api/v1/chat/users", tags=["users"])


@router.get("", response_model=list[UserResponse])
async def list_users(principal: CurrentPrincipal, uow: UoWDep) -> list[UserResponse]:
    users = await user_service.list_users(principal, uow)
    return [UserResponse.model_validate(u) for u in users]


@router.get("/me", response_model=UserResponse)
async def get_me(principal: CurrentPrincipal, uow: UoWDep) -> UserResponse:
    user = await user_service.get_user(principal.user_id, uow)
    return UserResponse.model_validate(user)


@router.get("/online", response_model=list[int])
async def list_online_users(_principal: CurrentPrincipal, realtime: RealtimeDep) -> list[int]:
    return sorted(realtime.presence.list_online())
