"""Realtime event names and payloads. Inbound ones are validated before dispatch."""
from __future__ import annotations

from enum import StrEnum
from typing import Any
from uuid import UUID

from pydantic import ConfigDict, Field, model_validator

from chat_hub.api.v1.schemas.common import CamelModel
from chat_hub.api.v1.schemas.invitation import InvitationResponse
from chat_hub.api.v1.schemas.message import MessageResponse
from chat_hub.domain.value_objects.enums import MessageType


class Empty(CamelModel):
    pass


class ConversationRef(CamelModel):
    conversation_id: UUID

    @model_validator(mode="before")
    @classmethod
    def _accept_bare_id(cls, data: Any) -> Any:
        # join/leave may send just the id
        if isinstance(data, str):
            return {"conversationId": data}
        return data


class SendMessagePayload(CamelModel):
    conversation_id: UUID
    content: str = Field(min_length=1, max_length=5000)
    message_type: MessageType = MessageType.TEXT


class InviteToGroupPayload(CamelModel):
    conversation_id: UUID
    user_ids: list[int] = Field(min_length=1)


class InvitationRef(CamelModel):
    invitation_id: UUID


class _Relay(CamelModel):
    model_config = ConfigDict(extra="allow")


class ChatRequestSentPayload(_Relay):
    receiver_id: int
    request: Any = None


class ChatRequestAcceptedPayload(_Relay):
    sender_id: int
    conversation: Any = None


class ChatRequestRejectedPayload(_Relay):
    sender_id: int


class ClientEvent(StrEnum):
    JOIN_CONVERSATION = "join-conversation"
    LEAVE_CONVERSATION = "leave-conversation"
    SEND_MESSAGE = "send-message"
    TYPING_START = "typing-start"
    TYPING_STOP = "typing-stop"
    MARK_AS_READ = "mark-as-read"
    CHAT_REQUEST_SENT = "chat-request-sent"
    CHAT_REQUEST_ACCEPTED = "chat-request-accepted"
    CHAT_REQUEST_REJECTED = "chat-request-rejected"
    GET_ONLINE_USERS = "get-online-users"
    INVITE_TO_GROUP = "invite-to-group"
    ACCEPT_INVITATION = "accept-invitation"
    DECLINE_INVITATION = "decline-invitation"
    PING = "ping"


class ServerEvent(StrEnum):
    USER_ONLINE = "user-online"
    USER_OFFLINE = "user-offline"
    NEW_MESSAGE = "new-message"
    MESSAGE_SENT = "message-sent"
    MESSAGE_ERROR = "message-error"
    USER_TYPING = "user-typing"
    USER_STOPPED_TYPING = "user-stopped-typing"
    MESSAGES_READ = "messages-read"
    ONLINE_USERS = "online-users"
    NEW_CHAT_REQUEST = "new-chat-request"
    CHAT_REQUEST_ACCEPTED = "chat-request-accepted"
    CHAT_REQUEST_REJECTED = "chat-request-rejected"
    GROUP_CREATED = "group-created"
    GROUP_UPDATED = "group-updated"
    MEMBER_JOINED = "member-joined"
    GROUP_INVITATION = "group-invitation"
    INVITATIONS_SENT = "invitations-sent"
    INVITATION_ACCEPTED = "invitation-accepted"
    INVITATION_DECLINED = "invitation-declined"
    CONVERSATION_REFRESH = "conversation-refresh"
    CONVERSATION_REMOVED = "conversation-removed"
    ERROR = "error"
    PONG = "pong"


# outbound payloads

class UserPresence(CamelModel):
    user_id: int


class TypingNotice(CamelModel):
    user_id: int
    conversation_id: UUID


class MessagesRead(CamelModel):
    conversation_id: UUID
    user_id: int


class MessageSentAck(CamelModel):
    success: bool = True
    message: MessageResponse


class MessageError(CamelModel):
    error: str


class EventError(CamelModel):
    event: str
    error: str


class MemberJoined(CamelModel):
    conversation_id: UUID
    user_id: int


class ConversationRefresh(CamelModel):
    conversation_id: UUID
    action: str
    user_id: int


class ConversationRemoved(CamelModel):
    conversation_id: UUID


class InvitationsSent(CamelModel):
    conversation_id: UUID
    invitations: list[InvitationResponse]


class InvitationReply(CamelModel):
    invitation_id: UUID
    conversation_id: UUID
    user_id: int
