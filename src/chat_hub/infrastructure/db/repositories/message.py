from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from chat_hub.domain.entities.message import Message
from chat_hub.infrastructure.db.mappers import message as mapper
from chat_hub.infrastructure.db.models.message import MessageModel
from chat_hub.infrastructure.db.repositories._cursor import decode_cursor


class MessageReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, message_id: UUID) -> Message | None:
        model = await self._session.get(MessageModel, message_id)
        return mapper.model_to_entity(model) if model else None

    async def list_messages(
        self,
        conversation_id: UUID,
        *,
        since: datetime | None = None,
        cursor: str | None = None,
        limit: int = 50,
    ) -> list[Message]:
        stmt = (
            select(MessageModel)
            .where(MessageModel.conversation_id == conversation_id)
            .order_by(MessageModel.created_at.asc(), MessageModel.id.asc())
            .limit(limit)
        )
        if since is not None:
            stmt = stmt.where(MessageModel.created_at >= since)
        if cursor:
            after = decode_cursor(cursor)
            stmt = stmt.where(
                (MessageModel.created_at > after.created_at)
                | ((MessageModel.created_at == after.created_at) & (MessageModel.id > after.message_id))
            )
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]


class MessageWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, message: Message) -> Message:
        model = mapper.entity_to_model(message)
        self._session.add(model)
        await self._session.flush()
        return mapper.model_to_entity(model)

    async def delete(self, message_id: UUID) -> None:
        await self._session.execute(delete(MessageModel).where(MessageModel.id == message_id))

    async def mark_read(self, conversation_id: UUID, reader_id: int) -> int:
        stmt = (
            update(MessageModel)
            .where(
                MessageModel.conversation_id == conversation_id,
                MessageModel.sender_id.is_distinct_from(reader_id),
                ~MessageModel.read_by.any(reader_id),
            )
            .values(read_by=func.array_append(MessageModel.read_by, reader_id))
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount
