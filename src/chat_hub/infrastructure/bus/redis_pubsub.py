"""Redis Pub/Sub room fan-out: publish side + subscriber background task."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Collection

import redis.asyncio as aioredis
from fastapi.encoders import jsonable_encoder

from chat_hub.infrastructure.bus.serializer import deserialize_room_emit, serialize_room_emit
from chat_hub.infrastructure.ws.manager import RoomHub

logger = logging.getLogger(__name__)


class RedisFanoutTransport:
    """RoomTransport that relays every room emit through a Redis channel.

    Membership stays in the local :class:`RoomHub`; each process delivers the
    relayed emit to whichever of its own sockets are in the room.
    """

    def __init__(self, redis: aioredis.Redis, channel: str, hub: RoomHub) -> None:
        self._redis = redis
        self._channel = channel
        self._hub = hub

    async def emit_to_room(
        self,
        room: str,
        event: str,
        data: Any = None,
        *,
        skip: Collection[str] = (),
    ) -> None:
        raw = serialize_room_emit(
            room, str(event), jsonable_encoder(data, by_alias=True), list(skip),
        )
        await self._redis.publish(self._channel, raw)

    def join_room(self, handle: str, room: str) -> None:
        self._hub.join_room(handle, room)

    def leave_room(self, handle: str, room: str) -> None:
        self._hub.leave_room(handle, room)

    def connections_in_room(self, room: str) -> set[str]:
        return self._hub.connections_in_room(room)


class RedisPubSubSubscriber:
    """Background task that delivers relayed room emits to local sockets."""

    def __init__(
        self,
        redis: aioredis.Redis,
        channel: str,
        hub: RoomHub,
    ) -> None:
        self._redis = redis
        self._channel = channel
        self._hub = hub
        self._task: asyncio.Task[None] | None = None

    async def start(self) -> None:
        self._task = asyncio.create_task(self._listen(), name="redis-pubsub-subscriber")
        logger.info("Redis Pub/Sub subscriber started on channel=%s", self._channel)

    async def stop(self) -> None:
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            logger.info("Redis Pub/Sub subscriber stopped")

    async def _listen(self) -> None:
        pubsub = self._redis.pubsub()
        await pubsub.subscribe(self._channel)
        try:
            async for message in pubsub.listen():
                if message["type"] != "message":
                    continue
                try:
                    room, event, data, skip = deserialize_room_emit(message["data"])
                    await self._hub.emit_to_room(room, event, data, skip=skip)
                except Exception:
                    logger.exception("Error processing pubsub message")
        finally:
            await pubsub.unsubscribe(self._channel)
            await pubsub.aclose()
