from __future__ import annotations

from dataclasses import dataclass

from chat_hub.domain.entities.chat_request import ChatRequest
from chat_hub.domain.entities.conversation import Conversation


@dataclass(frozen=True, slots=True)
class ChatRequestAccepted:
    chat_request: ChatRequest
    conversation: Conversation
