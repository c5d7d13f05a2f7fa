from __future__ import annotations

import pytest

from chat_hub.application.dto.principal import Principal
from chat_hub.application.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from chat_hub.domain.value_objects.enums import ChatRequestStatus
from chat_hub.services import chat_request_service, user_service
from tests.conftest import FakeUoW, make_chat_request, make_conversation


@pytest.mark.asyncio
async def test_send_chat_request(fake_uow: FakeUoW, user_principal):
    req = await chat_request_service.send_chat_request(7, user_principal, fake_uow, message=" hey ")

    assert req.sender_id == 42
    assert req.receiver_id == 7
    assert req.status == ChatRequestStatus.PENDING
    assert req.message == "hey"


@pytest.mark.asyncio
async def test_send_chat_request_checks(fake_uow: FakeUoW, user_principal):
    with pytest.raises(ValidationError):
        await chat_request_service.send_chat_request(42, user_principal, fake_uow)
    with pytest.raises(NotFoundError):
        await chat_request_service.send_chat_request(12345, user_principal, fake_uow)

    await chat_request_service.send_chat_request(7, user_principal, fake_uow)
    with pytest.raises(ConflictError):
        await chat_request_service.send_chat_request(7, user_principal, fake_uow)
    with pytest.raises(ConflictError):
        await chat_request_service.send_chat_request(42, Principal(user_id=7), fake_uow)


@pytest.mark.asyncio
async def test_accept_opens_conversation(fake_uow: FakeUoW, user_principal):
    req = make_chat_request(sender_id=7, receiver_id=42)
    fake_uow.db.chat_requests[req.id] = req

    result = await chat_request_service.accept_chat_request(req.id, user_principal, fake_uow)

    assert result.chat_request.status == ChatRequestStatus.ACCEPTED
    assert sorted(result.conversation.participant_ids) == [7, 42]
    assert fake_uow.db.chat_requests[req.id].status == ChatRequestStatus.ACCEPTED


@pytest.mark.asyncio
async def test_accept_reuses_existing_conversation(fake_uow: FakeUoW, user_principal):
    existing = fake_uow.add_conversation(make_conversation(members=[42, 7]))
    req = make_chat_request(sender_id=7, receiver_id=42)
    fake_uow.db.chat_requests[req.id] = req

    result = await chat_request_service.accept_chat_request(req.id, user_principal, fake_uow)

    assert result.conversation.id == existing.id
    assert len(fake_uow.db.conversations) == 1


@pytest.mark.asyncio
async def test_only_receiver_accepts_or_rejects(fake_uow: FakeUoW):
    req = make_chat_request(sender_id=7, receiver_id=42)
    fake_uow.db.chat_requests[req.id] = req

    with pytest.raises(ForbiddenError):
        await chat_request_service.accept_chat_request(req.id, Principal(user_id=7), fake_uow)
    with pytest.raises(ForbiddenError):
        await chat_request_service.reject_chat_request(req.id, Principal(user_id=3), fake_uow)


@pytest.mark.asyncio
async def test_reject_then_accept_fails(fake_uow: FakeUoW, user_principal):
    req = make_chat_request(sender_id=7, receiver_id=42)
    fake_uow.db.chat_requests[req.id] = req

    rejected = await chat_request_service.reject_chat_request(req.id, user_principal, fake_uow)
    assert rejected.status == ChatRequestStatus.REJECTED

    with pytest.raises(ValidationError):
        await chat_request_service.accept_chat_request(req.id, user_principal, fake_uow)


@pytest.mark.asyncio
async def test_cancel_by_sender_only(fake_uow: FakeUoW, user_principal):
    req = make_chat_request(sender_id=7, receiver_id=42)
    fake_uow.db.chat_requests[req.id] = req

    with pytest.raises(ForbiddenError):
        await chat_request_service.cancel_chat_request(req.id, user_principal, fake_uow)

    cancelled = await chat_request_service.cancel_chat_request(req.id, Principal(user_id=7), fake_uow)
    assert cancelled.status == ChatRequestStatus.CANCELLED


@pytest.mark.asyncio
async def test_list_pending_and_sent(fake_uow: FakeUoW, user_principal):
    incoming = make_chat_request(sender_id=7, receiver_id=42)
    outgoing = make_chat_request(sender_id=42, receiver_id=3)
    done = make_chat_request(sender_id=99, receiver_id=42, status=ChatRequestStatus.REJECTED)
    for req in (incoming, outgoing, done):
        fake_uow.db.chat_requests[req.id] = req

    pending = await chat_request_service.list_pending_requests(user_principal, fake_uow)
    sent = await chat_request_service.list_sent_requests(user_principal, fake_uow)

    assert [r.id for r in pending] == [incoming.id]
    assert [r.id for r in sent] == [outgoing.id]


@pytest.mark.asyncio
async def test_user_directory(fake_uow: FakeUoW, user_principal):
    users = await user_service.list_users(user_principal, fake_uow)
    assert [u.id for u in users] == [3, 7, 99]

    with pytest.raises(NotFoundError):
        await user_service.get_user(555, fake_uow)

    await user_service.set_online_status(42, True, fake_uow)
    me = await user_service.get_user(42, fake_uow)
    assert me.is_online is True
    assert me.last_seen is not None
