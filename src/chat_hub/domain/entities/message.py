from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID


@dataclass(frozen=True, slots=True)
class Message:
    id: UUID
    conversation_id: UUID
    sender_id: int | None
    type: str
    content: str
    system_type: str | None
    metadata: dict[str, Any] | None
    created_at: datetime
    read_by: tuple[int, ...] = field(default_factory=tuple)

    @property
    def is_read(self) -> bool:
        return any(uid != self.sender_id for uid in self.read_by)
