from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True, slots=True)
class ChatRequest:
    id: UUID
    sender_id: int
    receiver_id: int
    status: str
    message: str | None
    created_at: datetime
    updated_at: datetime
