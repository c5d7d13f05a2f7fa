from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import UUID

from chat_hub.domain.entities.invitation import Invitation


class InvitationRepository(Protocol):
    async def get_by_id(self, invitation_id: UUID) -> Invitation | None: ...

    async def find_pending(self, conversation_id: UUID, user_id: int) -> Invitation | None: ...

    async def create(self, invitation: Invitation) -> Invitation: ...

    async def transition(self, invitation_id: UUID, *, from_status: str, to_status: str) -> bool:
        """Compare-and-set the status. Return False if the row was not in ``from_status``."""
        ...

    async def list_pending_for_user(self, user_id: int, now: datetime) -> list[Invitation]: ...

    async def expire_stale(self, now: datetime) -> int: ...
