from __future__ import annotations

from datetime import datetime

from chat_hub.api.v1.schemas.common import CamelModel


class UserResponse(CamelModel):
    id: int
    username: str
    avatar: str | None
    is_online: bool
    last_seen: datetime | None
