from __future__ import annotations


class PresenceRegistry:
    """Process-local map of user id → live connection handles.

    A user with no handles is offline. All operations are synchronous so a
    single update never spans a suspension point.
    """

    def __init__(self) -> None:
        self._handles: dict[int, set[str]] = {}

    def register(self, user_id: int, handle: str) -> bool:
        """Add a handle. Return True if this is the user's first connection."""
        handles = self._handles.setdefault(user_id, set())
        first = not handles
        handles.add(handle)
        return first

    def unregister(self, user_id: int, handle: str) -> bool:
        """Remove a handle. Return True only if it was the user's last one."""
        handles = self._handles.get(user_id)
        if not handles or handle not in handles:
            return False
        handles.discard(handle)
        if handles:
            return False
        del self._handles[user_id]
        return True

    def is_online(self, user_id: int) -> bool:
        return bool(self._handles.get(user_id))

    def list_online(self) -> set[int]:
        return set(self._handles)

    def handles_for(self, user_id: int) -> set[str]:
        return set(self._handles.get(user_id, ()))
