"""Relay envelope for room emits. ``data`` must already be JSON-ready."""
from __future__ import annotations

import json
from typing import Any


def serialize_room_emit(room: str, event: str, data: Any, skip: list[str]) -> str:
    return json.dumps({"room": room, "event": event, "data": data, "skip": skip})


def deserialize_room_emit(raw: str | bytes) -> tuple[str, str, Any, list[str]]:
    envelope = json.loads(raw)
    return envelope["room"], envelope["event"], envelope.get("data"), envelope.get("skip") or []
