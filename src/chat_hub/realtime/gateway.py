"""Composition root for the realtime layer, one per application."""
from __future__ import annotations

from dataclasses import dataclass

import redis.asyncio as aioredis

from chat_hub.application.ports.auth import TokenVerifier
from chat_hub.application.ports.clock import AsyncioScheduler, Scheduler
from chat_hub.application.ports.realtime import RoomTransport
from chat_hub.application.uow import UnitOfWorkFactory
from chat_hub.infrastructure.bus.redis_pubsub import RedisFanoutTransport, RedisPubSubSubscriber
from chat_hub.infrastructure.ws.manager import RoomHub
from chat_hub.realtime.fanout import RealtimeNotifier
from chat_hub.realtime.lifecycle import ConnectionLifecycle
from chat_hub.realtime.presence import PresenceRegistry
from chat_hub.realtime.router import EventRouter
from chat_hub.realtime.typing_indicators import TypingCoordinator


@dataclass
class RealtimeGateway:
    hub: RoomHub
    transport: RoomTransport
    presence: PresenceRegistry
    typing: TypingCoordinator
    notifier: RealtimeNotifier
    lifecycle: ConnectionLifecycle
    router: EventRouter
    subscriber: RedisPubSubSubscriber | None = None
    redis: aioredis.Redis | None = None

    async def start(self) -> None:
        if self.subscriber is not None:
            await self.subscriber.start()

    async def close(self) -> None:
        self.typing.cancel_all()
        if self.subscriber is not None:
            await self.subscriber.stop()


def build_gateway(
    *,
    verifier: TokenVerifier,
    uow_factory: UnitOfWorkFactory,
    typing_timeout: float = 5.0,
    scheduler: Scheduler | None = None,
    redis: aioredis.Redis | None = None,
    channel: str = "chat.fanout",
) -> RealtimeGateway:
    """Wire the realtime components. Passing ``redis`` enables cross-process fan-out."""
    hub = RoomHub()
    transport: RoomTransport = hub
    subscriber = None
    if redis is not None:
        transport = RedisFanoutTransport(redis, channel, hub)
        subscriber = RedisPubSubSubscriber(redis, channel, hub)

    presence = PresenceRegistry()
    typing = TypingCoordinator(
        transport, presence, scheduler or AsyncioScheduler(), timeout=typing_timeout,
    )
    notifier = RealtimeNotifier(transport, presence)
    return RealtimeGateway(
        hub=hub,
        transport=transport,
        presence=presence,
        typing=typing,
        notifier=notifier,
        lifecycle=ConnectionLifecycle(verifier, transport, presence, typing, uow_factory),
        router=EventRouter(transport, presence, typing, notifier, uow_factory),
        subscriber=subscriber,
        redis=redis,
    )
