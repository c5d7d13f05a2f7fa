"""Inbound event dispatch for authenticated connections."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from pydantic import BaseModel
from pydantic import ValidationError as PayloadError

from chat_hub.api.v1.schemas.events import (
    ChatRequestAcceptedPayload,
    ChatRequestRejectedPayload,
    ChatRequestSentPayload,
    ClientEvent,
    ConversationRef,
    Empty,
    EventError,
    InvitationRef,
    InvitationReply,
    InvitationsSent,
    InviteToGroupPayload,
    MessageError,
    MessageSentAck,
    MessagesRead,
    SendMessagePayload,
    ServerEvent,
)
from chat_hub.api.v1.schemas.invitation import InvitationResponse
from chat_hub.api.v1.schemas.message import MessageResponse
from chat_hub.application.exceptions import AppError
from chat_hub.application.ports.realtime import RoomTransport
from chat_hub.application.uow import UnitOfWorkFactory
from chat_hub.realtime.context import ConnectionContext
from chat_hub.realtime.fanout import RealtimeNotifier
from chat_hub.realtime.presence import PresenceRegistry
from chat_hub.realtime.rooms import conversation_room
from chat_hub.realtime.typing_indicators import TypingCoordinator
from chat_hub.services import (
    conversation_service,
    invitation_service,
    message_service,
    read_state_service,
)

logger = logging.getLogger(__name__)

Handler = Callable[[ConnectionContext, Any], Awaitable[None]]


@dataclass(frozen=True, slots=True)
class _Route:
    payload: type[BaseModel]
    handler: Handler
    error_event: str


class EventRouter:
    """Validates each inbound event and runs its handler.

    No exception escapes :meth:`dispatch`; every failure becomes an error
    event sent to the originating connection only.
    """

    def __init__(
        self,
        transport: RoomTransport,
        presence: PresenceRegistry,
        typing: TypingCoordinator,
        notifier: RealtimeNotifier,
        uow_factory: UnitOfWorkFactory,
    ) -> None:
        self._transport = transport
        self._presence = presence
        self._typing = typing
        self._notifier = notifier
        self._uow_factory = uow_factory
        self._routes: dict[str, _Route] = {}

        self.on(ClientEvent.PING, Empty, self._ping)
        self.on(ClientEvent.JOIN_CONVERSATION, ConversationRef, self._join_conversation)
        self.on(ClientEvent.LEAVE_CONVERSATION, ConversationRef, self._leave_conversation)
        self.on(
            ClientEvent.SEND_MESSAGE,
            SendMessagePayload,
            self._send_message,
            error_event=ServerEvent.MESSAGE_ERROR,
        )
        self.on(ClientEvent.TYPING_START, ConversationRef, self._typing_start)
        self.on(ClientEvent.TYPING_STOP, ConversationRef, self._typing_stop)
        self.on(ClientEvent.MARK_AS_READ, ConversationRef, self._mark_as_read)
        self.on(ClientEvent.CHAT_REQUEST_SENT, ChatRequestSentPayload, self._chat_request_sent)
        self.on(ClientEvent.CHAT_REQUEST_ACCEPTED, ChatRequestAcceptedPayload, self._chat_request_accepted)
        self.on(ClientEvent.CHAT_REQUEST_REJECTED, ChatRequestRejectedPayload, self._chat_request_rejected)
        self.on(ClientEvent.GET_ONLINE_USERS, Empty, self._get_online_users)
        self.on(ClientEvent.INVITE_TO_GROUP, InviteToGroupPayload, self._invite_to_group)
        self.on(ClientEvent.ACCEPT_INVITATION, InvitationRef, self._accept_invitation)
        self.on(ClientEvent.DECLINE_INVITATION, InvitationRef, self._decline_invitation)

    def on(
        self,
        event: str,
        payload: type[BaseModel],
        handler: Handler,
        *,
        error_event: str = ServerEvent.ERROR,
    ) -> None:
        self._routes[event] = _Route(payload=payload, handler=handler, error_event=error_event)

    @property
    def events(self) -> frozenset[str]:
        return frozenset(self._routes)

    async def dispatch(self, ctx: ConnectionContext, event: str, data: Any = None) -> None:
        route = self._routes.get(event)
        if route is None:
            await self._fail(ctx, event, ServerEvent.ERROR, "Unknown event")
            return

        try:
            payload = route.payload.model_validate({} if data is None else data)
        except PayloadError:
            logger.debug("Invalid %s payload from user %s", event, ctx.user_id)
            await self._fail(ctx, event, route.error_event, "Invalid payload")
            return

        try:
            await route.handler(ctx, payload)
        except AppError as exc:
            await self._fail(ctx, event, route.error_event, exc.detail)
        except Exception:
            logger.exception("Handler for %s failed (user=%s)", event, ctx.user_id)
            await self._fail(ctx, event, route.error_event, "Internal server error")

    async def _reply(self, ctx: ConnectionContext, event: str, data: Any = None) -> None:
        await self._transport.emit_to_room(ctx.handle, event, data)

    async def _fail(self, ctx: ConnectionContext, event: str, error_event: str, detail: str) -> None:
        if error_event == ServerEvent.MESSAGE_ERROR:
            payload: BaseModel = MessageError(error=detail)
        else:
            payload = EventError(event=event, error=detail)
        try:
            await self._reply(ctx, error_event, payload)
        except Exception:
            logger.exception("Could not deliver %s to %s", error_event, ctx.handle)

    # handlers

    async def _ping(self, ctx: ConnectionContext, _: Empty) -> None:
        await self._reply(ctx, ServerEvent.PONG)

    async def _join_conversation(self, ctx: ConnectionContext, ref: ConversationRef) -> None:
        async with self._uow_factory() as uow:
            await conversation_service.get_conversation(ref.conversation_id, ctx.principal, uow)
        self._transport.join_room(ctx.handle, conversation_room(ref.conversation_id))

    async def _leave_conversation(self, ctx: ConnectionContext, ref: ConversationRef) -> None:
        self._transport.leave_room(ctx.handle, conversation_room(ref.conversation_id))

    async def _send_message(self, ctx: ConnectionContext, body: SendMessagePayload) -> None:
        async with self._uow_factory() as uow:
            message, conversation = await message_service.send_message(
                body.conversation_id, ctx.principal, body.content, body.message_type, uow,
            )
        await self._notifier.deliver_message(message, conversation.participant_ids)
        await self._reply(
            ctx,
            ServerEvent.MESSAGE_SENT,
            MessageSentAck(message=MessageResponse.from_entity(message)),
        )

    async def _typing_start(self, ctx: ConnectionContext, ref: ConversationRef) -> None:
        async with self._uow_factory() as uow:
            await conversation_service.get_conversation(ref.conversation_id, ctx.principal, uow)
        await self._typing.start_typing(ref.conversation_id, ctx.user_id)

    async def _typing_stop(self, ctx: ConnectionContext, ref: ConversationRef) -> None:
        await self._typing.stop_typing(ref.conversation_id, ctx.user_id)

    async def _mark_as_read(self, ctx: ConnectionContext, ref: ConversationRef) -> None:
        async with self._uow_factory() as uow:
            await read_state_service.mark_read(ref.conversation_id, ctx.principal, uow)
        await self._transport.emit_to_room(
            conversation_room(ref.conversation_id),
            ServerEvent.MESSAGES_READ,
            MessagesRead(conversation_id=ref.conversation_id, user_id=ctx.user_id),
            skip=self._presence.handles_for(ctx.user_id),
        )

    async def _chat_request_sent(self, ctx: ConnectionContext, body: ChatRequestSentPayload) -> None:
        await self._notifier.route_to_user(body.receiver_id, ServerEvent.NEW_CHAT_REQUEST, body.request)

    async def _chat_request_accepted(
        self, ctx: ConnectionContext, body: ChatRequestAcceptedPayload,
    ) -> None:
        await self._notifier.route_to_user(
            body.sender_id, ServerEvent.CHAT_REQUEST_ACCEPTED, body.conversation,
        )

    async def _chat_request_rejected(
        self, ctx: ConnectionContext, body: ChatRequestRejectedPayload,
    ) -> None:
        await self._notifier.route_to_user(body.sender_id, ServerEvent.CHAT_REQUEST_REJECTED)

    async def _get_online_users(self, ctx: ConnectionContext, _: Empty) -> None:
        await self._reply(ctx, ServerEvent.ONLINE_USERS, sorted(self._presence.list_online()))

    async def _invite_to_group(self, ctx: ConnectionContext, body: InviteToGroupPayload) -> None:
        async with self._uow_factory() as uow:
            invitations = await invitation_service.invite_to_group(
                body.conversation_id, body.user_ids, ctx.principal, uow,
            )
        views = [InvitationResponse.model_validate(inv) for inv in invitations]
        for view in views:
            await self._notifier.route_to_user(view.invited_user, ServerEvent.GROUP_INVITATION, view)
        await self._reply(
            ctx,
            ServerEvent.INVITATIONS_SENT,
            InvitationsSent(conversation_id=body.conversation_id, invitations=views),
        )

    async def _accept_invitation(self, ctx: ConnectionContext, ref: InvitationRef) -> None:
        async with self._uow_factory() as uow:
            accepted = await invitation_service.accept_invitation(ref.invitation_id, ctx.principal, uow)
        invitation = accepted.invitation
        await self._notifier.route_to_user(
            invitation.invited_by,
            ServerEvent.INVITATION_ACCEPTED,
            InvitationReply(
                invitation_id=invitation.id,
                conversation_id=invitation.conversation_id,
                user_id=ctx.user_id,
            ),
        )
        await self._notifier.membership_changed(accepted.change)

    async def _decline_invitation(self, ctx: ConnectionContext, ref: InvitationRef) -> None:
        async with self._uow_factory() as uow:
            invitation = await invitation_service.decline_invitation(
                ref.invitation_id, ctx.principal, uow,
            )
        await self._notifier.route_to_user(
            invitation.invited_by,
            ServerEvent.INVITATION_DECLINED,
            InvitationReply(
                invitation_id=invitation.id,
                conversation_id=invitation.conversation_id,
                user_id=ctx.user_id,
            ),
        )
