from __future__ import annotations

from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from chat_hub.domain.entities.chat_request import ChatRequest
from chat_hub.domain.value_objects.enums import ChatRequestStatus
from chat_hub.infrastructure.db.mappers import chat_request as mapper
from chat_hub.infrastructure.db.models.chat_request import ChatRequestModel


class ChatRequestRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, request_id: UUID) -> ChatRequest | None:
        model = await self._session.get(ChatRequestModel, request_id, populate_existing=True)
        return mapper.model_to_entity(model) if model else None

    async def find_pending(self, sender_id: int, receiver_id: int) -> ChatRequest | None:
        stmt = select(ChatRequestModel).where(
            ChatRequestModel.sender_id == sender_id,
            ChatRequestModel.receiver_id == receiver_id,
            ChatRequestModel.status == ChatRequestStatus.PENDING,
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return mapper.model_to_entity(model) if model else None

    async def create(self, chat_request: ChatRequest) -> ChatRequest:
        model = mapper.entity_to_model(chat_request)
        self._session.add(model)
        await self._session.flush()
        return mapper.model_to_entity(model)

    async def transition(self, request_id: UUID, *, from_status: str, to_status: str) -> bool:
        stmt = (
            update(ChatRequestModel)
            .where(
                ChatRequestModel.id == request_id,
                ChatRequestModel.status == from_status,
            )
            .values(status=to_status)
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1

    async def list_pending_for_receiver(self, user_id: int) -> list[ChatRequest]:
        return await self._list_pending(ChatRequestModel.receiver_id == user_id)

    async def list_pending_from_sender(self, user_id: int) -> list[ChatRequest]:
        return await self._list_pending(ChatRequestModel.sender_id == user_id)

    async def _list_pending(self, condition) -> list[ChatRequest]:
        stmt = (
            select(ChatRequestModel)
            .where(condition, ChatRequestModel.status == ChatRequestStatus.PENDING)
            .order_by(ChatRequestModel.created_at.desc())
        )
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]
