from __future__ import annotations

from dataclasses import dataclass

from chat_hub.application.dto.principal import Principal


@dataclass(frozen=True, slots=True)
class ConnectionContext:
    """Identity bound to one socket at handshake. Never re-derived from payloads."""

    handle: str
    principal: Principal

    @property
    def user_id(self) -> int:
        return self.principal.user_id
