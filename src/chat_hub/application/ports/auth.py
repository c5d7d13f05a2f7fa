from __future__ import annotations

from typing import Protocol

from chat_hub.application.dto.principal import Principal


class TokenVerifier(Protocol):
    """Turns a bearer token into a Principal.

    Implementations raise ``AuthenticationError`` for any token they reject,
    whatever the underlying cause (bad signature, expiry, missing user id).
    """

    async def verify(self, token: str) -> Principal: ...
