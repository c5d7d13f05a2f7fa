from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import Field

from chat_hub.api.v1.schemas.common import CamelModel


class InviteRequest(CamelModel):
    user_ids: list[int] = Field(min_length=1)


class InvitationResponse(CamelModel):
    id: UUID
    conversation_id: UUID
    invited_by: int
    invited_user: int
    status: str
    expires_at: datetime
    created_at: datetime
