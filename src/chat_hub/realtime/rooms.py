"""Room naming. Rooms are derived names, never stored."""
from __future__ import annotations

from uuid import UUID

NAMESPACE_ROOM = "namespace"


def user_room(user_id: int) -> str:
    return f"user:{user_id}"


def conversation_room(conversation_id: UUID | str) -> str:
    return f"conversation:{conversation_id}"
