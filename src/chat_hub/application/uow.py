from __future__ import annotations

from typing import AsyncContextManager, Callable, Protocol

from chat_hub.application.repositories.chat_request import ChatRequestRepository
from chat_hub.application.repositories.conversation import (
    ConversationReader,
    ConversationWriter,
)
from chat_hub.application.repositories.invitation import InvitationRepository
from chat_hub.application.repositories.message import MessageReader, MessageWriter
from chat_hub.application.repositories.participant import (
    ParticipantReader,
    ParticipantWriter,
)
from chat_hub.application.repositories.user import UserRepository


class UnitOfWork(Protocol):
    conversations: ConversationReader
    conversations_w: ConversationWriter
    participants: ParticipantReader
    participants_w: ParticipantWriter
    messages: MessageReader
    messages_w: MessageWriter
    invitations: InvitationRepository
    chat_requests: ChatRequestRepository
    users: UserRepository

    async def commit(self) -> None: ...
    async def rollback(self) -> None: ...
    async def flush(self) -> None: ...


UnitOfWorkFactory = Callable[[], AsyncContextManager[UnitOfWork]]
