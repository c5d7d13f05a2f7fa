"""WebSocket endpoint tests: handshake auth and a few event round trips."""
from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from chat_hub.app import create_app
from tests.conftest import FakeUoW, make_conversation, make_token, uow_factory_for


@pytest.fixture
def client(fake_uow: FakeUoW):
    app = create_app(uow_factory=uow_factory_for(fake_uow))
    with TestClient(app) as test_client:
        yield test_client


def test_missing_token_closes_4001(client):
    with pytest.raises(WebSocketDisconnect) as exc_info:
        with client.websocket_connect("/ws/chat") as ws:
            ws.receive_json()
    assert exc_info.value.code == 4001


def test_invalid_token_closes_4003(client):
    with pytest.raises(WebSocketDisconnect) as exc_info:
        with client.websocket_connect("/ws/chat?token=nope") as ws:
            ws.receive_json()
    assert exc_info.value.code == 4003


def test_ping_and_invalid_frame(client):
    with client.websocket_connect(f"/ws/chat?token={make_token(42)}") as ws:
        assert ws.receive_json() == {"type": "user-online", "data": {"userId": 42}}

        ws.send_json({"type": "ping"})
        assert ws.receive_json()["type"] == "pong"

        ws.send_text("not json")
        reply = ws.receive_json()
        assert reply["type"] == "error"
        assert reply["data"]["error"] == "Invalid payload"


def test_send_message_round_trip(client, fake_uow: FakeUoW):
    conv = fake_uow.add_conversation(make_conversation(members=[42, 7]))

    with client.websocket_connect(f"/ws/chat?token={make_token(42)}") as ws:
        ws.receive_json()
        ws.send_json({
            "type": "send-message",
            "data": {"conversationId": str(conv.id), "content": "over the wire"},
        })

        delivered = ws.receive_json()
        assert delivered["type"] == "new-message"
        assert delivered["data"]["content"] == "over the wire"

        ack = ws.receive_json()
        assert ack["type"] == "message-sent"
        assert ack["data"]["message"]["id"] == delivered["data"]["id"]

    assert [m.content for m in fake_uow.db.messages] == ["over the wire"]


def test_presence_across_sockets(client):
    with client.websocket_connect(f"/ws/chat?token={make_token(42)}") as first:
        assert first.receive_json()["data"] == {"userId": 42}

        with client.websocket_connect(f"/ws/chat?token={make_token(7)}") as second:
            assert second.receive_json()["data"] == {"userId": 7}
            assert first.receive_json() == {"type": "user-online", "data": {"userId": 7}}

            first.send_json({"type": "get-online-users"})
            assert first.receive_json() == {"type": "online-users", "data": [7, 42]}

        assert first.receive_json() == {"type": "user-offline", "data": {"userId": 7}}
