from __future__ import annotations

from dataclasses import dataclass, field

from chat_hub.domain.value_objects.enums import UserRole


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated caller identity extracted from JWT."""

    user_id: int
    role: UserRole = UserRole.USER
    email: str | None = None
    roles: list[str] = field(default_factory=list)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN or "admin" in self.roles
