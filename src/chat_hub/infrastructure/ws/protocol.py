"""Socket frame envelope: ``{"type": <event name>, "data": <payload>}``."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class WsInbound(BaseModel):
    type: str
    data: Any = None


class WsOutbound(BaseModel):
    type: str
    data: Any = None

    @classmethod
    def error(cls, event: str | None, detail: str) -> WsOutbound:
        """Frame for failures that happen before an event reaches the router."""
        return cls(type="error", data={"event": event, "error": detail})

    def encode(self) -> str:
        return self.model_dump_json(by_alias=True)
