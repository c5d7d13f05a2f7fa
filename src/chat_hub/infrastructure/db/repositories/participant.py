from __future__ import annotations

from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from chat_hub.domain.entities.participant import Participant
from chat_hub.infrastructure.db.models.participant import ParticipantModel


class ParticipantReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def is_participant(self, conversation_id: UUID, user_id: int) -> bool:
        stmt = (
            select(ParticipantModel.id)
            .where(
                ParticipantModel.conversation_id == conversation_id,
                ParticipantModel.user_id == user_id,
            )
            .limit(1)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none() is not None


class ParticipantWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, participant: Participant) -> bool:
        stmt = (
            pg_insert(ParticipantModel)
            .values(
                conversation_id=participant.conversation_id,
                user_id=participant.user_id,
                is_admin=participant.is_admin,
                unread_count=participant.unread_count,
                joined_at=participant.joined_at,
            )
            .on_conflict_do_nothing(constraint="uq_participant_member")
            .returning(ParticipantModel.id)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def remove(self, conversation_id: UUID, user_id: int) -> bool:
        result = await self._session.execute(
            delete(ParticipantModel).where(
                ParticipantModel.conversation_id == conversation_id,
                ParticipantModel.user_id == user_id,
            )
        )
        return result.rowcount > 0

    async def set_admin(self, conversation_id: UUID, user_id: int, is_admin: bool) -> None:
        stmt = (
            update(ParticipantModel)
            .where(
                ParticipantModel.conversation_id == conversation_id,
                ParticipantModel.user_id == user_id,
            )
            .values(is_admin=is_admin)
        )
        await self._session.execute(stmt)

    async def increment_unread(
        self,
        conversation_id: UUID,
        *,
        except_user_id: int | None,
    ) -> None:
        stmt = (
            update(ParticipantModel)
            .where(ParticipantModel.conversation_id == conversation_id)
            .values(unread_count=ParticipantModel.unread_count + 1)
        )
        if except_user_id is not None:
            stmt = stmt.where(ParticipantModel.user_id != except_user_id)
        await self._session.execute(stmt)

    async def reset_unread(self, conversation_id: UUID, user_id: int) -> None:
        stmt = (
            update(ParticipantModel)
            .where(
                ParticipantModel.conversation_id == conversation_id,
                ParticipantModel.user_id == user_id,
            )
            .values(unread_count=0)
        )
        await self._session.execute(stmt)
