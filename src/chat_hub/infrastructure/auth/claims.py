"""Claim → Principal mapping shared by the JWT verifiers."""
from __future__ import annotations

from typing import Any

from chat_hub.application.dto.principal import Principal
from chat_hub.application.exceptions import AuthenticationError
from chat_hub.domain.value_objects.enums import UserRole


def principal_from_claims(payload: dict[str, Any]) -> Principal:
    # issuers put the account id in either "sub" or "userId"
    raw_id = payload.get("sub", payload.get("userId"))
    try:
        user_id = int(raw_id)
    except (TypeError, ValueError) as exc:
        raise AuthenticationError("Authentication error: Invalid token") from exc

    role_raw = payload.get("role", UserRole.USER)
    role = UserRole(role_raw) if role_raw in UserRole.__members__.values() else UserRole.USER
    return Principal(
        user_id=user_id,
        role=role,
        email=payload.get("email"),
        roles=payload.get("roles", []),
    )
