from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class User:
    id: int
    username: str
    avatar: str | None
    is_online: bool
    last_seen: datetime | None
    created_at: datetime
