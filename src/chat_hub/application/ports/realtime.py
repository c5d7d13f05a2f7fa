from __future__ import annotations

from typing import Any, Collection, Protocol


class RoomTransport(Protocol):
    """Narrow room capability the realtime core needs from the socket layer."""

    async def emit_to_room(
        self,
        room: str,
        event: str,
        data: Any = None,
        *,
        skip: Collection[str] = (),
    ) -> None: ...

    def join_room(self, handle: str, room: str) -> None: ...

    def leave_room(self, handle: str, room: str) -> None: ...

    def connections_in_room(self, room: str) -> set[str]: ...
