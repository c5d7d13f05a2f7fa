from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from chat_hub.domain.entities.invitation import Invitation
from chat_hub.domain.value_objects.enums import InvitationStatus
from chat_hub.infrastructure.db.mappers import invitation as mapper
from chat_hub.infrastructure.db.models.invitation import InvitationModel


class InvitationRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, invitation_id: UUID) -> Invitation | None:
        model = await self._session.get(InvitationModel, invitation_id, populate_existing=True)
        return mapper.model_to_entity(model) if model else None

    async def find_pending(self, conversation_id: UUID, user_id: int) -> Invitation | None:
        stmt = (
            select(InvitationModel)
            .where(
                InvitationModel.conversation_id == conversation_id,
                InvitationModel.invited_user == user_id,
                InvitationModel.status == InvitationStatus.PENDING,
            )
            .order_by(InvitationModel.created_at.desc())
            .limit(1)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return mapper.model_to_entity(model) if model else None

    async def create(self, invitation: Invitation) -> Invitation:
        model = mapper.entity_to_model(invitation)
        self._session.add(model)
        await self._session.flush()
        return mapper.model_to_entity(model)

    async def transition(self, invitation_id: UUID, *, from_status: str, to_status: str) -> bool:
        stmt = (
            update(InvitationModel)
            .where(
                InvitationModel.id == invitation_id,
                InvitationModel.status == from_status,
            )
            .values(status=to_status)
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1

    async def list_pending_for_user(self, user_id: int, now: datetime) -> list[Invitation]:
        stmt = (
            select(InvitationModel)
            .where(
                InvitationModel.invited_user == user_id,
                InvitationModel.status == InvitationStatus.PENDING,
                InvitationModel.expires_at > now,
            )
            .order_by(InvitationModel.created_at.desc())
        )
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]

    async def expire_stale(self, now: datetime) -> int:
        stmt = (
            update(InvitationModel)
            .where(
                InvitationModel.status == InvitationStatus.PENDING,
                InvitationModel.expires_at <= now,
            )
            .values(status=InvitationStatus.EXPIRED)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount
