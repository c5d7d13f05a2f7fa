from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from chat_hub.application.dto.principal import Principal
from chat_hub.application.exceptions import ForbiddenError, NotFoundError, ValidationError
from chat_hub.domain.value_objects.enums import MessageType
from chat_hub.services import message_service, read_state_service
from tests.conftest import FakeUoW, make_conversation, make_message


@pytest.mark.asyncio
async def test_send_message_updates_unread_and_last_message(fake_uow: FakeUoW, user_principal):
    conv = fake_uow.add_conversation(make_conversation(members=[42, 7, 3], group=True))

    msg, target = await message_service.send_message(
        conv.id, user_principal, "  hi there ", MessageType.TEXT, fake_uow,
    )

    assert msg.content == "hi there"
    assert msg.sender_id == 42
    assert msg.read_by == (42,)
    assert msg.is_read is False
    assert target.id == conv.id

    stored = await fake_uow.conversations.get_by_id(conv.id)
    assert stored.last_message_id == msg.id
    assert stored.unread_for(42) == 0
    assert stored.unread_for(7) == 1
    assert stored.unread_for(3) == 1
    assert fake_uow._committed is True


@pytest.mark.asyncio
async def test_send_message_non_participant(fake_uow: FakeUoW):
    conv = fake_uow.add_conversation(make_conversation(members=[42, 7]))

    with pytest.raises(ForbiddenError):
        await message_service.send_message(
            conv.id, Principal(user_id=3), "hello", MessageType.TEXT, fake_uow,
        )
    assert fake_uow.db.messages == []


@pytest.mark.asyncio
async def test_send_empty_message_rejected(fake_uow: FakeUoW, user_principal):
    conv = fake_uow.add_conversation(make_conversation())

    with pytest.raises(ValidationError):
        await message_service.send_message(conv.id, user_principal, "   ", MessageType.TEXT, fake_uow)


@pytest.mark.asyncio
async def test_users_cannot_send_system_messages(fake_uow: FakeUoW, user_principal):
    conv = fake_uow.add_conversation(make_conversation())

    with pytest.raises(ValidationError):
        await message_service.send_message(
            conv.id, user_principal, "fake", MessageType.SYSTEM, fake_uow,
        )


@pytest.mark.asyncio
async def test_group_history_starts_at_join(fake_uow: FakeUoW):
    joined = datetime.now(timezone.utc)
    conv = fake_uow.add_conversation(
        make_conversation(members=[42, 7], group=True, joined_at=joined),
    )
    old = make_message(conversation_id=conv.id, created_at=joined - timedelta(hours=1))
    new = make_message(conversation_id=conv.id, created_at=joined + timedelta(minutes=1))
    fake_uow.db.messages.extend([old, new])

    result = await message_service.list_messages(conv.id, Principal(user_id=7), None, 50, fake_uow)

    assert [m.id for m in result] == [new.id]


@pytest.mark.asyncio
async def test_delete_own_message_only(fake_uow: FakeUoW, user_principal):
    conv = fake_uow.add_conversation(make_conversation())
    msg = make_message(conversation_id=conv.id, sender_id=7)
    fake_uow.db.messages.append(msg)

    with pytest.raises(ForbiddenError):
        await message_service.delete_message(msg.id, user_principal, fake_uow)

    await message_service.delete_message(msg.id, Principal(user_id=7), fake_uow)
    assert fake_uow.db.messages == []

    with pytest.raises(NotFoundError):
        await message_service.delete_message(msg.id, Principal(user_id=7), fake_uow)


@pytest.mark.asyncio
async def test_mark_read_is_idempotent(fake_uow: FakeUoW, user_principal):
    conv = fake_uow.add_conversation(make_conversation(members=[42, 7]))
    for _ in range(3):
        await message_service.send_message(
            conv.id, Principal(user_id=7), "ping", MessageType.TEXT, fake_uow,
        )

    first = await read_state_service.mark_read(conv.id, user_principal, fake_uow)
    second = await read_state_service.mark_read(conv.id, user_principal, fake_uow)

    assert first == 3
    assert second == 0
    assert all(m.read_by == (7, 42) for m in fake_uow.db.messages)
    assert all(m.is_read for m in fake_uow.db.messages)
    stored = await fake_uow.conversations.get_by_id(conv.id)
    assert stored.unread_for(42) == 0


@pytest.mark.asyncio
async def test_mark_read_skips_own_messages(fake_uow: FakeUoW, user_principal):
    conv = fake_uow.add_conversation(make_conversation(members=[42, 7]))
    await message_service.send_message(conv.id, user_principal, "mine", MessageType.TEXT, fake_uow)

    marked = await read_state_service.mark_read(conv.id, user_principal, fake_uow)

    assert marked == 0
    assert fake_uow.db.messages[0].read_by == (42,)


@pytest.mark.asyncio
async def test_mark_read_requires_participation(fake_uow: FakeUoW):
    conv = fake_uow.add_conversation(make_conversation(members=[42, 7]))

    with pytest.raises(ForbiddenError):
        await read_state_service.mark_read(conv.id, Principal(user_id=3), fake_uow)
