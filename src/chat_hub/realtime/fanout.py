"""Fan-out of domain results to personal and conversation rooms."""
from __future__ import annotations

import logging
from typing import Any, Iterable
from uuid import UUID

from chat_hub.api.v1.schemas.conversation import ConversationResponse
from chat_hub.api.v1.schemas.events import (
    ConversationRefresh,
    ConversationRemoved,
    MemberJoined,
    ServerEvent,
)
from chat_hub.api.v1.schemas.message import MessageResponse
from chat_hub.application.dto.conversation import MembershipChange
from chat_hub.application.ports.realtime import RoomTransport
from chat_hub.domain.entities.conversation import Conversation
from chat_hub.domain.entities.message import Message
from chat_hub.domain.value_objects.enums import MembershipAction
from chat_hub.realtime.presence import PresenceRegistry
from chat_hub.realtime.rooms import conversation_room, user_room

logger = logging.getLogger(__name__)


class RealtimeNotifier:
    def __init__(self, transport: RoomTransport, presence: PresenceRegistry) -> None:
        self._transport = transport
        self._presence = presence

    async def deliver_message(self, message: Message, participant_ids: Iterable[int]) -> None:
        """Personal room of every participant, then the conversation room.

        A connection in both rooms gets the message twice; clients dedupe by id.
        """
        payload = MessageResponse.from_entity(message)
        for uid in participant_ids:
            await self._transport.emit_to_room(user_room(uid), ServerEvent.NEW_MESSAGE, payload)
        await self._transport.emit_to_room(
            conversation_room(message.conversation_id), ServerEvent.NEW_MESSAGE, payload,
        )

    async def membership_changed(self, change: MembershipChange) -> None:
        conversation = change.conversation
        cid = conversation.id

        if change.action.evicts:
            self.evict(change.user_id, cid)
            await self._transport.emit_to_room(
                user_room(change.user_id),
                ServerEvent.CONVERSATION_REMOVED,
                ConversationRemoved(conversation_id=cid),
            )

        refresh = ConversationRefresh(
            conversation_id=cid, action=change.action.value, user_id=change.user_id,
        )
        for uid in conversation.participant_ids:
            await self._transport.emit_to_room(
                user_room(uid), ServerEvent.CONVERSATION_REFRESH, refresh,
            )

        if change.action == MembershipAction.JOINED:
            joined = MemberJoined(conversation_id=cid, user_id=change.user_id)
            for uid in conversation.participant_ids:
                await self._transport.emit_to_room(user_room(uid), ServerEvent.MEMBER_JOINED, joined)
        elif change.action == MembershipAction.PROMOTED:
            await self.group_updated(conversation)

        if change.system_message is not None:
            await self.deliver_message(change.system_message, conversation.participant_ids)

    async def group_created(self, conversation: Conversation, creator_id: int) -> None:
        for uid in conversation.participant_ids:
            if uid == creator_id:
                continue
            await self._transport.emit_to_room(
                user_room(uid),
                ServerEvent.GROUP_CREATED,
                ConversationResponse.from_entity(conversation, viewer_id=uid),
            )

    async def group_updated(self, conversation: Conversation) -> None:
        for uid in conversation.participant_ids:
            await self._transport.emit_to_room(
                user_room(uid),
                ServerEvent.GROUP_UPDATED,
                ConversationResponse.from_entity(conversation, viewer_id=uid),
            )

    async def conversation_deleted(self, conversation: Conversation) -> None:
        removed = ConversationRemoved(conversation_id=conversation.id)
        for uid in conversation.participant_ids:
            self.evict(uid, conversation.id)
            await self._transport.emit_to_room(user_room(uid), ServerEvent.CONVERSATION_REMOVED, removed)

    def evict(self, user_id: int, conversation_id: UUID) -> None:
        """Take every connection of the user out of the conversation room."""
        room = conversation_room(conversation_id)
        for handle in self._transport.connections_in_room(user_room(user_id)):
            self._transport.leave_room(handle, room)

    async def route_to_user(self, user_id: int, event: str, payload: Any = None) -> bool:
        """Direct delivery to an online user. Offline targets are dropped silently."""
        if not self._presence.is_online(user_id):
            logger.debug("Dropping %s for offline user %s", event, user_id)
            return False
        await self._transport.emit_to_room(user_room(user_id), event, payload)
        return True
