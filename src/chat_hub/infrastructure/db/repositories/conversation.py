from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from chat_hub.domain.entities.conversation import Conversation
from chat_hub.domain.value_objects.enums import ConversationType, GroupVisibility
from chat_hub.infrastructure.db.mappers import conversation as mapper
from chat_hub.infrastructure.db.models.conversation import ConversationModel
from chat_hub.infrastructure.db.models.participant import ParticipantModel


def _has_member(user_id: int):
    return (
        select(ParticipantModel.id)
        .where(
            ParticipantModel.conversation_id == ConversationModel.id,
            ParticipantModel.user_id == user_id,
        )
        .exists()
    )


class ConversationReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, conversation_id: UUID) -> Conversation | None:
        # participants are mutated with bulk statements; always reload them
        stmt = (
            select(ConversationModel)
            .where(ConversationModel.id == conversation_id)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return mapper.model_to_entity(model) if model else None

    async def find_one_to_one(self, user_id: int, other_user_id: int) -> Conversation | None:
        stmt = (
            select(ConversationModel)
            .where(
                ConversationModel.type == ConversationType.ONE_TO_ONE,
                _has_member(user_id),
                _has_member(other_user_id),
            )
            .order_by(ConversationModel.created_at.asc())
            .limit(1)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return mapper.model_to_entity(model) if model else None

    async def list_for_user(self, user_id: int) -> list[Conversation]:
        stmt = (
            select(ConversationModel)
            .where(_has_member(user_id))
            .order_by(
                ConversationModel.last_message_at.desc().nullslast(),
                ConversationModel.updated_at.desc(),
            )
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]

    async def list_public_groups(
        self,
        exclude_user_id: int,
        *,
        search: str | None = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[Conversation], int]:
        filters = [
            ConversationModel.type == ConversationType.GROUP,
            ConversationModel.group_type == GroupVisibility.PUBLIC,
            ConversationModel.is_archived.is_(False),
            ~_has_member(exclude_user_id),
        ]
        if search:
            pattern = f"%{search}%"
            filters.append(
                ConversationModel.group_name.ilike(pattern)
                | ConversationModel.group_description.ilike(pattern)
            )

        total = await self._session.scalar(
            select(func.count()).select_from(ConversationModel).where(*filters)
        )
        stmt = (
            select(ConversationModel)
            .where(*filters)
            .order_by(ConversationModel.created_at.desc(), ConversationModel.id)
            .offset(offset)
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()], int(total or 0)


class ConversationWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, conversation: Conversation) -> Conversation:
        model = mapper.entity_to_model(conversation)
        self._session.add(model)
        await self._session.flush()
        return mapper.model_to_entity(model)

    async def update_details(
        self,
        conversation_id: UUID,
        *,
        group_name: str | None = None,
        group_description: str | None = None,
    ) -> None:
        values: dict[str, str] = {}
        if group_name is not None:
            values["group_name"] = group_name
        if group_description is not None:
            values["group_description"] = group_description
        if not values:
            return
        stmt = (
            update(ConversationModel)
            .where(ConversationModel.id == conversation_id)
            .values(**values)
        )
        await self._session.execute(stmt)

    async def touch_last_message(
        self,
        conversation_id: UUID,
        message_id: UUID | None,
        ts: datetime,
    ) -> None:
        stmt = (
            update(ConversationModel)
            .where(ConversationModel.id == conversation_id)
            .values(last_message_id=message_id, last_message_at=ts)
        )
        await self._session.execute(stmt)

    async def delete(self, conversation_id: UUID) -> None:
        # participants, messages and invitations go with it via ON DELETE CASCADE
        await self._session.execute(
            delete(ConversationModel).where(ConversationModel.id == conversation_id)
        )
