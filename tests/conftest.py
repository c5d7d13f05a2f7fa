"""Shared test fixtures."""
from __future__ import annotations

import dataclasses
import json
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, AsyncIterator
from uuid import UUID

import jwt
import pytest

from chat_hub.application.dto.principal import Principal
from chat_hub.config import settings
from chat_hub.domain.entities.chat_request import ChatRequest
from chat_hub.domain.entities.conversation import Conversation, GroupSettings
from chat_hub.domain.entities.invitation import Invitation
from chat_hub.domain.entities.message import Message
from chat_hub.domain.entities.participant import Participant
from chat_hub.domain.entities.user import User
from chat_hub.domain.value_objects.enums import (
    ChatRequestStatus,
    ConversationType,
    GroupVisibility,
    InvitationStatus,
    MessageType,
)
from chat_hub.infrastructure.auth.hs256_verifier import HS256Verifier
from chat_hub.realtime.context import ConnectionContext
from chat_hub.realtime.gateway import RealtimeGateway, build_gateway


@pytest.fixture
def user_principal() -> Principal:
    return Principal(user_id=42)


@pytest.fixture
def other_principal() -> Principal:
    return Principal(user_id=7)


def make_token(user_id: int = 42, **claims: Any) -> str:
    return jwt.encode(
        {"sub": str(user_id), **claims},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )


def make_user(user_id: int, username: str | None = None) -> User:
    return User(
        id=user_id,
        username=username or f"user{user_id}",
        avatar=None,
        is_online=False,
        last_seen=None,
        created_at=datetime.now(timezone.utc),
    )


def make_conversation(
    *,
    conversation_id: UUID | None = None,
    members: list[int] | None = None,
    admins: list[int] | None = None,
    group: bool = False,
    group_type: str = GroupVisibility.PRIVATE,
    max_members: int = 500,
    allow_member_invites: bool = False,
    is_archived: bool = False,
    joined_at: datetime | None = None,
) -> Conversation:
    now = datetime.now(timezone.utc)
    cid = conversation_id or uuid.uuid4()
    members = members if members is not None else [42, 7]
    admins = admins or []
    return Conversation(
        id=cid,
        type=ConversationType.GROUP if group else ConversationType.ONE_TO_ONE,
        group_name="Team" if group else None,
        group_description=None,
        group_type=group_type,
        settings=GroupSettings(
            max_members=max_members,
            allow_member_invites=allow_member_invites,
            is_archived=is_archived,
        ),
        created_by=members[0] if members else None,
        last_message_id=None,
        last_message_at=None,
        created_at=now,
        updated_at=now,
        participants=tuple(
            Participant(
                conversation_id=cid,
                user_id=uid,
                is_admin=uid in admins,
                unread_count=0,
                joined_at=joined_at or now,
            )
            for uid in members
        ),
    )


def make_message(
    *,
    conversation_id: UUID | None = None,
    sender_id: int | None = 42,
    content: str = "hello",
    created_at: datetime | None = None,
) -> Message:
    return Message(
        id=uuid.uuid4(),
        conversation_id=conversation_id or uuid.uuid4(),
        sender_id=sender_id,
        type=MessageType.TEXT,
        content=content,
        system_type=None,
        metadata=None,
        created_at=created_at or datetime.now(timezone.utc),
        read_by=(sender_id,) if sender_id is not None else (),
    )


def make_invitation(
    *,
    conversation_id: UUID,
    invited_by: int = 42,
    invited_user: int = 7,
    status: str = InvitationStatus.PENDING,
    expires_in: timedelta = timedelta(days=7),
) -> Invitation:
    now = datetime.now(timezone.utc)
    return Invitation(
        id=uuid.uuid4(),
        conversation_id=conversation_id,
        invited_by=invited_by,
        invited_user=invited_user,
        status=status,
        expires_at=now + expires_in,
        created_at=now,
        updated_at=now,
    )


def make_chat_request(
    *,
    sender_id: int = 7,
    receiver_id: int = 42,
    status: str = ChatRequestStatus.PENDING,
) -> ChatRequest:
    now = datetime.now(timezone.utc)
    return ChatRequest(
        id=uuid.uuid4(),
        sender_id=sender_id,
        receiver_id=receiver_id,
        status=status,
        message=None,
        created_at=now,
        updated_at=now,
    )


@dataclass
class FakeDB:
    """Backing state shared by the fake repositories of one FakeUoW."""

    conversations: dict[UUID, Conversation] = field(default_factory=dict)
    participants: list[Participant] = field(default_factory=list)
    messages: list[Message] = field(default_factory=list)
    invitations: dict[UUID, Invitation] = field(default_factory=dict)
    chat_requests: dict[UUID, ChatRequest] = field(default_factory=dict)
    users: dict[int, User] = field(default_factory=dict)

    def members_of(self, conversation_id: UUID) -> tuple[Participant, ...]:
        return tuple(p for p in self.participants if p.conversation_id == conversation_id)

    def assemble(self, conversation: Conversation) -> Conversation:
        return dataclasses.replace(conversation, participants=self.members_of(conversation.id))


@dataclass
class FakeConversationReader:
    _db: FakeDB

    async def get_by_id(self, conversation_id: UUID) -> Conversation | None:
        conv = self._db.conversations.get(conversation_id)
        return self._db.assemble(conv) if conv else None

    async def find_one_to_one(self, user_id: int, other_user_id: int) -> Conversation | None:
        for conv in self._db.conversations.values():
            if conv.type != ConversationType.ONE_TO_ONE:
                continue
            members = {p.user_id for p in self._db.members_of(conv.id)}
            if members == {user_id, other_user_id}:
                return self._db.assemble(conv)
        return None

    async def list_for_user(self, user_id: int) -> list[Conversation]:
        convs = [
            self._db.assemble(c)
            for c in self._db.conversations.values()
            if any(p.user_id == user_id for p in self._db.members_of(c.id))
        ]
        epoch = datetime.min.replace(tzinfo=timezone.utc)
        return sorted(convs, key=lambda c: c.last_message_at or epoch, reverse=True)

    async def list_public_groups(
        self,
        exclude_user_id: int,
        *,
        search: str | None = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[Conversation], int]:
        found = []
        for conv in self._db.conversations.values():
            full = self._db.assemble(conv)
            if not full.is_group or not full.is_public or full.settings.is_archived:
                continue
            if full.has_participant(exclude_user_id):
                continue
            if search and search.lower() not in (full.group_name or "").lower():
                continue
            found.append(full)
        return found[offset:offset + limit], len(found)


@dataclass
class FakeConversationWriter:
    _db: FakeDB

    async def create(self, conversation: Conversation) -> Conversation:
        self._db.conversations[conversation.id] = dataclasses.replace(conversation, participants=())
        self._db.participants.extend(conversation.participants)
        return conversation

    async def update_details(
        self,
        conversation_id: UUID,
        *,
        group_name: str | None = None,
        group_description: str | None = None,
    ) -> None:
        conv = self._db.conversations[conversation_id]
        self._db.conversations[conversation_id] = dataclasses.replace(
            conv,
            group_name=group_name if group_name is not None else conv.group_name,
            group_description=(
                group_description if group_description is not None else conv.group_description
            ),
        )

    async def touch_last_message(
        self, conversation_id: UUID, message_id: UUID | None, ts: datetime,
    ) -> None:
        conv = self._db.conversations.get(conversation_id)
        if conv is not None:
            self._db.conversations[conversation_id] = dataclasses.replace(
                conv, last_message_id=message_id, last_message_at=ts,
            )

    async def delete(self, conversation_id: UUID) -> None:
        self._db.conversations.pop(conversation_id, None)
        self._db.participants[:] = [
            p for p in self._db.participants if p.conversation_id != conversation_id
        ]
        self._db.messages[:] = [m for m in self._db.messages if m.conversation_id != conversation_id]


@dataclass
class FakeParticipantReader:
    _db: FakeDB

    async def is_participant(self, conversation_id: UUID, user_id: int) -> bool:
        return any(p.user_id == user_id for p in self._db.members_of(conversation_id))


@dataclass
class FakeParticipantWriter:
    _db: FakeDB

    def _update(self, conversation_id: UUID, user_ids: set[int] | None, **changes: Any) -> None:
        self._db.participants[:] = [
            dataclasses.replace(p, **{k: v(p) if callable(v) else v for k, v in changes.items()})
            if p.conversation_id == conversation_id and (user_ids is None or p.user_id in user_ids)
            else p
            for p in self._db.participants
        ]

    async def add(self, participant: Participant) -> bool:
        if any(p.user_id == participant.user_id for p in self._db.members_of(participant.conversation_id)):
            return False
        self._db.participants.append(participant)
        return True

    async def remove(self, conversation_id: UUID, user_id: int) -> bool:
        before = len(self._db.participants)
        self._db.participants[:] = [
            p for p in self._db.participants
            if not (p.conversation_id == conversation_id and p.user_id == user_id)
        ]
        return len(self._db.participants) < before

    async def set_admin(self, conversation_id: UUID, user_id: int, is_admin: bool) -> None:
        self._update(conversation_id, {user_id}, is_admin=is_admin)

    async def increment_unread(self, conversation_id: UUID, *, except_user_id: int | None) -> None:
        others = {p.user_id for p in self._db.members_of(conversation_id) if p.user_id != except_user_id}
        self._update(conversation_id, others, unread_count=lambda p: p.unread_count + 1)

    async def reset_unread(self, conversation_id: UUID, user_id: int) -> None:
        self._update(conversation_id, {user_id}, unread_count=0)


@dataclass
class FakeMessageReader:
    _db: FakeDB

    async def get_by_id(self, message_id: UUID) -> Message | None:
        return next((m for m in self._db.messages if m.id == message_id), None)

    async def list_messages(
        self,
        conversation_id: UUID,
        *,
        since: datetime | None = None,
        cursor: str | None = None,
        limit: int = 50,
    ) -> list[Message]:
        found = [
            m for m in self._db.messages
            if m.conversation_id == conversation_id and (since is None or m.created_at >= since)
        ]
        return found[:limit]


@dataclass
class FakeMessageWriter:
    _db: FakeDB

    async def create(self, message: Message) -> Message:
        self._db.messages.append(message)
        return message

    async def delete(self, message_id: UUID) -> None:
        self._db.messages[:] = [m for m in self._db.messages if m.id != message_id]

    async def mark_read(self, conversation_id: UUID, reader_id: int) -> int:
        touched = 0
        for i, m in enumerate(self._db.messages):
            if m.conversation_id != conversation_id or m.sender_id == reader_id:
                continue
            if reader_id in m.read_by:
                continue
            self._db.messages[i] = dataclasses.replace(m, read_by=(*m.read_by, reader_id))
            touched += 1
        return touched


@dataclass
class FakeInvitationRepo:
    _db: FakeDB

    async def get_by_id(self, invitation_id: UUID) -> Invitation | None:
        return self._db.invitations.get(invitation_id)

    async def find_pending(self, conversation_id: UUID, user_id: int) -> Invitation | None:
        for inv in self._db.invitations.values():
            if (
                inv.conversation_id == conversation_id
                and inv.invited_user == user_id
                and inv.status == InvitationStatus.PENDING
            ):
                return inv
        return None

    async def create(self, invitation: Invitation) -> Invitation:
        self._db.invitations[invitation.id] = invitation
        return invitation

    async def transition(self, invitation_id: UUID, *, from_status: str, to_status: str) -> bool:
        inv = self._db.invitations.get(invitation_id)
        if inv is None or inv.status != from_status:
            return False
        self._db.invitations[invitation_id] = dataclasses.replace(inv, status=to_status)
        return True

    async def list_pending_for_user(self, user_id: int, now: datetime) -> list[Invitation]:
        return [
            inv for inv in self._db.invitations.values()
            if inv.invited_user == user_id
            and inv.status == InvitationStatus.PENDING
            and inv.expires_at > now
        ]

    async def expire_stale(self, now: datetime) -> int:
        stale = [
            inv for inv in self._db.invitations.values()
            if inv.status == InvitationStatus.PENDING and inv.expires_at <= now
        ]
        for inv in stale:
            self._db.invitations[inv.id] = dataclasses.replace(inv, status=InvitationStatus.EXPIRED)
        return len(stale)


@dataclass
class FakeChatRequestRepo:
    _db: FakeDB

    async def get_by_id(self, request_id: UUID) -> ChatRequest | None:
        return self._db.chat_requests.get(request_id)

    async def find_pending(self, sender_id: int, receiver_id: int) -> ChatRequest | None:
        for req in self._db.chat_requests.values():
            if (
                req.sender_id == sender_id
                and req.receiver_id == receiver_id
                and req.status == ChatRequestStatus.PENDING
            ):
                return req
        return None

    async def create(self, chat_request: ChatRequest) -> ChatRequest:
        self._db.chat_requests[chat_request.id] = chat_request
        return chat_request

    async def transition(self, request_id: UUID, *, from_status: str, to_status: str) -> bool:
        req = self._db.chat_requests.get(request_id)
        if req is None or req.status != from_status:
            return False
        self._db.chat_requests[request_id] = dataclasses.replace(req, status=to_status)
        return True

    async def list_pending_for_receiver(self, user_id: int) -> list[ChatRequest]:
        return [
            r for r in self._db.chat_requests.values()
            if r.receiver_id == user_id and r.status == ChatRequestStatus.PENDING
        ]

    async def list_pending_from_sender(self, user_id: int) -> list[ChatRequest]:
        return [
            r for r in self._db.chat_requests.values()
            if r.sender_id == user_id and r.status == ChatRequestStatus.PENDING
        ]


@dataclass
class FakeUserRepo:
    _db: FakeDB
    fail_set_online: bool = False
    status_calls: list[tuple[int, bool]] = field(default_factory=list)

    async def get_by_id(self, user_id: int) -> User | None:
        return self._db.users.get(user_id)

    async def list_all(self, *, exclude_user_id: int | None = None) -> list[User]:
        return [u for uid, u in sorted(self._db.users.items()) if uid != exclude_user_id]

    async def set_online(self, user_id: int, is_online: bool, ts: datetime) -> None:
        if self.fail_set_online:
            raise ConnectionError("database unavailable")
        self.status_calls.append((user_id, is_online))
        user = self._db.users.get(user_id) or make_user(user_id)
        self._db.users[user_id] = dataclasses.replace(user, is_online=is_online, last_seen=ts)


@dataclass
class FakeUoW:
    """In-memory UoW for unit tests."""
    db: FakeDB = field(default_factory=FakeDB)
    _committed: bool = False
    commits: int = 0
    rollbacks: int = 0

    def __post_init__(self) -> None:
        self.conversations = FakeConversationReader(self.db)
        self.conversations_w = FakeConversationWriter(self.db)
        self.participants = FakeParticipantReader(self.db)
        self.participants_w = FakeParticipantWriter(self.db)
        self.messages = FakeMessageReader(self.db)
        self.messages_w = FakeMessageWriter(self.db)
        self.invitations = FakeInvitationRepo(self.db)
        self.chat_requests = FakeChatRequestRepo(self.db)
        self.users = FakeUserRepo(self.db)

    def add_conversation(self, conversation: Conversation) -> Conversation:
        self.db.conversations[conversation.id] = dataclasses.replace(conversation, participants=())
        self.db.participants.extend(conversation.participants)
        return conversation

    def add_users(self, *user_ids: int) -> None:
        for uid in user_ids:
            self.db.users[uid] = make_user(uid)

    async def flush(self) -> None:
        pass

    async def commit(self) -> None:
        self._committed = True
        self.commits += 1

    async def rollback(self) -> None:
        self.rollbacks += 1

    async def __aenter__(self) -> FakeUoW:
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        if exc_type is not None:
            await self.rollback()


def uow_factory_for(uow: FakeUoW):
    """Every unit of work opened by the code under test shares ``uow``."""

    @asynccontextmanager
    async def _factory() -> AsyncIterator[FakeUoW]:
        async with uow:
            yield uow

    return _factory


class ManualHandle:
    def __init__(self, when: float, callback: Any) -> None:
        self.when = when
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Virtual-time scheduler: nothing fires until ``advance`` is awaited."""

    def __init__(self) -> None:
        self.now = 0.0
        self._handles: list[ManualHandle] = []

    def call_later(self, delay: float, callback: Any) -> ManualHandle:
        handle = ManualHandle(self.now + delay, callback)
        self._handles.append(handle)
        return handle

    @property
    def pending(self) -> list[ManualHandle]:
        return [h for h in self._handles if not h.cancelled and not h.fired]

    async def advance(self, seconds: float) -> None:
        self.now += seconds
        for handle in sorted(self.pending, key=lambda h: h.when):
            if handle.when <= self.now and not handle.cancelled:
                handle.fired = True
                await handle.callback()


class FakeWebSocket:
    """Just enough of starlette's WebSocket for RoomHub."""

    def __init__(self, *, broken: bool = False) -> None:
        self.accepted = False
        self.broken = broken
        self.sent: list[dict[str, Any]] = []

    async def accept(self) -> None:
        self.accepted = True

    async def send_text(self, raw: str) -> None:
        if self.broken:
            raise RuntimeError("socket closed")
        self.sent.append(json.loads(raw))

    def events(self, name: str | None = None) -> list[dict[str, Any]]:
        return [m for m in self.sent if name is None or m["type"] == name]

    def data(self, name: str) -> list[Any]:
        return [m["data"] for m in self.events(name)]

    def clear(self) -> None:
        self.sent.clear()


@dataclass
class RealtimeHarness:
    gateway: RealtimeGateway
    scheduler: ManualScheduler
    uow: FakeUoW

    async def connect(self, user_id: int) -> tuple[FakeWebSocket, ConnectionContext]:
        ws = FakeWebSocket()
        handle = await self.gateway.hub.accept(ws)
        ctx = await self.gateway.lifecycle.connect(handle, Principal(user_id=user_id))
        return ws, ctx

    async def disconnect(self, ctx: ConnectionContext) -> None:
        self.gateway.hub.release(ctx.handle)
        await self.gateway.lifecycle.disconnect(ctx, "test")

    async def send(self, ctx: ConnectionContext, event: str, data: Any = None) -> None:
        await self.gateway.router.dispatch(ctx, event, data)


@pytest.fixture
def fake_uow() -> FakeUoW:
    uow = FakeUoW()
    uow.add_users(42, 7, 3, 99)
    return uow


@pytest.fixture
def harness(fake_uow: FakeUoW) -> RealtimeHarness:
    scheduler = ManualScheduler()
    gateway = build_gateway(
        verifier=HS256Verifier(settings.JWT_SECRET, settings.JWT_ALGORITHM),
        uow_factory=uow_factory_for(fake_uow),
        typing_timeout=5.0,
        scheduler=scheduler,
    )
    return RealtimeHarness(gateway=gateway, scheduler=scheduler, uow=fake_uow)


class FlakyRedis:
    """Stand-in for the relay connection; ``publish`` raises while ``down``."""

    def __init__(self) -> None:
        self.down = False
        self.published: list[dict[str, Any]] = []

    async def publish(self, channel: str, raw: str) -> int:
        if self.down:
            raise ConnectionError("redis unavailable")
        self.published.append(json.loads(raw))
        return 1


@pytest.fixture
def flaky_redis() -> FlakyRedis:
    return FlakyRedis()


@pytest.fixture
def relay_harness(fake_uow: FakeUoW, flaky_redis: FlakyRedis) -> RealtimeHarness:
    scheduler = ManualScheduler()
    gateway = build_gateway(
        verifier=HS256Verifier(settings.JWT_SECRET, settings.JWT_ALGORITHM),
        uow_factory=uow_factory_for(fake_uow),
        typing_timeout=5.0,
        scheduler=scheduler,
        redis=flaky_redis,
    )
    return RealtimeHarness(gateway=gateway, scheduler=scheduler, uow=fake_uow)
