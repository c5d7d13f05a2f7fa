"""In-process WebSocket room hub."""
from __future__ import annotations

import logging
import uuid
from typing import Any, Collection

from fastapi import WebSocket
from fastapi.encoders import jsonable_encoder

from chat_hub.infrastructure.ws.protocol import WsOutbound
from chat_hub.realtime.rooms import NAMESPACE_ROOM

logger = logging.getLogger(__name__)


class RoomHub:
    """Tracks live sockets by handle and their room memberships.

    Every accepted socket is a member of its own handle room (direct replies)
    and of :data:`NAMESPACE_ROOM` (global broadcasts).
    """

    def __init__(self) -> None:
        self._sockets: dict[str, WebSocket] = {}
        self._rooms: dict[str, set[str]] = {}
        self._memberships: dict[str, set[str]] = {}

    async def accept(self, ws: WebSocket) -> str:
        await ws.accept()
        handle = uuid.uuid4().hex
        self._sockets[handle] = ws
        self.join_room(handle, handle)
        self.join_room(handle, NAMESPACE_ROOM)
        logger.debug("WS connected: %s (total=%d)", handle, len(self._sockets))
        return handle

    def release(self, handle: str) -> None:
        """Forget the socket and drop it from every room. Idempotent."""
        self._sockets.pop(handle, None)
        for room in self._memberships.pop(handle, set()):
            members = self._rooms.get(room)
            if members is not None:
                members.discard(handle)
                if not members:
                    del self._rooms[room]
        logger.debug("WS released: %s", handle)

    @property
    def connection_count(self) -> int:
        return len(self._sockets)

    def is_connected(self, handle: str) -> bool:
        return handle in self._sockets

    def join_room(self, handle: str, room: str) -> None:
        if handle not in self._sockets:
            return
        self._rooms.setdefault(room, set()).add(handle)
        self._memberships.setdefault(handle, set()).add(room)

    def leave_room(self, handle: str, room: str) -> None:
        members = self._rooms.get(room)
        if members is not None:
            members.discard(handle)
            if not members:
                del self._rooms[room]
        rooms = self._memberships.get(handle)
        if rooms is not None:
            rooms.discard(room)

    def connections_in_room(self, room: str) -> set[str]:
        return set(self._rooms.get(room, ()))

    def rooms_of(self, handle: str) -> set[str]:
        return set(self._memberships.get(handle, ()))

    async def emit_to_room(
        self,
        room: str,
        event: str,
        data: Any = None,
        *,
        skip: Collection[str] = (),
    ) -> None:
        """Send one event to every socket in ``room`` except ``skip`` handles."""
        targets = [h for h in self.connections_in_room(room) if h not in skip]
        if not targets:
            return
        raw = WsOutbound(type=str(event), data=jsonable_encoder(data, by_alias=True)).encode()
        dead: list[str] = []
        for handle in targets:
            ws = self._sockets.get(handle)
            if ws is None:
                continue
            try:
                await ws.send_text(raw)
            except Exception:
                dead.append(handle)
        for handle in dead:
            logger.debug("Dropping dead socket %s", handle)
            self.release(handle)
