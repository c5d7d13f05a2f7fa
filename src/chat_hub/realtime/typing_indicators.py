from __future__ import annotations

import functools
import logging
from dataclasses import dataclass
from uuid import UUID

from chat_hub.api.v1.schemas.events import ServerEvent, TypingNotice
from chat_hub.application.ports.clock import Cancellable, Scheduler
from chat_hub.application.ports.realtime import RoomTransport
from chat_hub.realtime.presence import PresenceRegistry
from chat_hub.realtime.rooms import conversation_room

logger = logging.getLogger(__name__)

TypingKey = tuple[UUID, int]


@dataclass(slots=True)
class _Timer:
    handle: Cancellable
    token: object


class TypingCoordinator:
    """Ephemeral typing indicators with one expiry timer per (conversation, user).

    Notifications go to the conversation room and skip every connection of the
    typer. Expiry emits exactly what an explicit stop emits.
    """

    def __init__(
        self,
        transport: RoomTransport,
        presence: PresenceRegistry,
        scheduler: Scheduler,
        timeout: float = 5.0,
    ) -> None:
        self._transport = transport
        self._presence = presence
        self._scheduler = scheduler
        self._timeout = timeout
        self._timers: dict[TypingKey, _Timer] = {}

    def is_typing(self, conversation_id: UUID, user_id: int) -> bool:
        return (conversation_id, user_id) in self._timers

    @property
    def active_count(self) -> int:
        return len(self._timers)

    async def start_typing(self, conversation_id: UUID, user_id: int) -> None:
        # cancel + rearm must not be split by an await
        self._arm((conversation_id, user_id))
        await self._emit(ServerEvent.USER_TYPING, conversation_id, user_id)

    async def stop_typing(self, conversation_id: UUID, user_id: int) -> None:
        self._clear((conversation_id, user_id))
        await self._emit(ServerEvent.USER_STOPPED_TYPING, conversation_id, user_id)

    async def clear_all_for(self, user_id: int) -> list[UUID]:
        """Drop every indicator the user owns. Returns the affected conversations."""
        keys = [key for key in self._timers if key[1] == user_id]
        for key in keys:
            self._clear(key)
        for conversation_id, _ in keys:
            await self._emit(ServerEvent.USER_STOPPED_TYPING, conversation_id, user_id)
        return [conversation_id for conversation_id, _ in keys]

    def cancel_all(self) -> None:
        for timer in self._timers.values():
            timer.handle.cancel()
        self._timers.clear()

    def _arm(self, key: TypingKey) -> None:
        self._clear(key)
        token = object()
        handle = self._scheduler.call_later(
            self._timeout, functools.partial(self._expire, key, token),
        )
        self._timers[key] = _Timer(handle=handle, token=token)

    def _clear(self, key: TypingKey) -> None:
        timer = self._timers.pop(key, None)
        if timer is not None:
            timer.handle.cancel()

    async def _expire(self, key: TypingKey, token: object) -> None:
        timer = self._timers.get(key)
        # superseded by a later start, or already stopped
        if timer is None or timer.token is not token:
            return
        del self._timers[key]
        conversation_id, user_id = key
        logger.debug("Typing expired: conversation=%s user=%s", conversation_id, user_id)
        await self._emit(ServerEvent.USER_STOPPED_TYPING, conversation_id, user_id)

    async def _emit(self, event: ServerEvent, conversation_id: UUID, user_id: int) -> None:
        await self._transport.emit_to_room(
            conversation_room(conversation_id),
            event,
            TypingNotice(user_id=user_id, conversation_id=conversation_id),
            skip=self._presence.handles_for(user_id),
        )
