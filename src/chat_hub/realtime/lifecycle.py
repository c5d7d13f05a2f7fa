from __future__ import annotations

import logging

from chat_hub.api.v1.schemas.events import ServerEvent, UserPresence
from chat_hub.application.dto.principal import Principal
from chat_hub.application.exceptions import AuthenticationError
from chat_hub.application.ports.auth import TokenVerifier
from chat_hub.application.ports.realtime import RoomTransport
from chat_hub.application.uow import UnitOfWorkFactory
from chat_hub.realtime.context import ConnectionContext
from chat_hub.realtime.presence import PresenceRegistry
from chat_hub.realtime.rooms import NAMESPACE_ROOM, user_room
from chat_hub.realtime.typing_indicators import TypingCoordinator
from chat_hub.services import user_service

logger = logging.getLogger(__name__)

TOKEN_REQUIRED = "Authentication error: Token required"
INVALID_TOKEN = "Authentication error: Invalid token"


class ConnectionLifecycle:
    """Handshake authentication plus connect/disconnect bookkeeping."""

    def __init__(
        self,
        verifier: TokenVerifier,
        transport: RoomTransport,
        presence: PresenceRegistry,
        typing: TypingCoordinator,
        uow_factory: UnitOfWorkFactory,
    ) -> None:
        self._verifier = verifier
        self._transport = transport
        self._presence = presence
        self._typing = typing
        self._uow_factory = uow_factory

    async def authenticate(self, token: str | None) -> Principal:
        """Resolve the handshake token or raise before any state is touched."""
        if not token:
            raise AuthenticationError(TOKEN_REQUIRED, code=4001)
        try:
            return await self._verifier.verify(token)
        except AuthenticationError as exc:
            raise AuthenticationError(INVALID_TOKEN, code=4003) from exc
        except Exception as exc:
            logger.warning("Token verification error: %s", exc)
            raise AuthenticationError(INVALID_TOKEN, code=4003) from exc

    async def connect(self, handle: str, principal: Principal) -> ConnectionContext:
        user_id = principal.user_id
        ctx = ConnectionContext(handle=handle, principal=principal)
        self._presence.register(user_id, handle)
        self._transport.join_room(handle, user_room(user_id))
        try:
            await self._set_online(user_id, True)
            await self._transport.emit_to_room(
                NAMESPACE_ROOM, ServerEvent.USER_ONLINE, UserPresence(user_id=user_id),
            )
        except Exception:
            # a half-open connection must not stay registered as online
            await self.disconnect(ctx, "connect failed")
            raise
        logger.info("User %s connected (handle=%s)", user_id, handle)
        return ctx

    async def disconnect(self, ctx: ConnectionContext, reason: str | None = None) -> None:
        user_id = ctx.user_id
        last = self._presence.unregister(user_id, ctx.handle)
        try:
            await self._typing.clear_all_for(user_id)
        except Exception:
            logger.exception("Failed to clear typing indicators for user %s", user_id)
        if last:
            await self._set_online(user_id, False)
            try:
                await self._transport.emit_to_room(
                    NAMESPACE_ROOM, ServerEvent.USER_OFFLINE, UserPresence(user_id=user_id),
                )
            except Exception:
                logger.exception("Failed to broadcast offline for user %s", user_id)
        logger.info(
            "User %s disconnected (handle=%s, reason=%s, last=%s)",
            user_id, ctx.handle, reason, last,
        )

    async def _set_online(self, user_id: int, is_online: bool) -> None:
        # best effort: the connection outlives a failed status write
        try:
            async with self._uow_factory() as uow:
                await user_service.set_online_status(user_id, is_online, uow)
        except Exception:
            logger.exception("Failed to set online=%s for user %s", is_online, user_id)
