"""Keyset cursors for message history.

A cursor names the last message of the previous page as
urlsafe-base64("<created_at iso>|<message id>") with the padding stripped.
"""
from __future__ import annotations

import base64
import binascii
from datetime import datetime
from typing import NamedTuple
from uuid import UUID

from chat_hub.application.exceptions import ValidationError


class MessageCursor(NamedTuple):
    created_at: datetime
    message_id: UUID


def encode_cursor(created_at: datetime, message_id: UUID) -> str:
    raw = f"{created_at.isoformat()}|{message_id}".encode()
    return base64.urlsafe_b64encode(raw).decode().rstrip("=")


def decode_cursor(cursor: str) -> MessageCursor:
    padded = cursor + "=" * (-len(cursor) % 4)
    try:
        ts_str, id_str = base64.urlsafe_b64decode(padded.encode()).decode().split("|", 1)
        return MessageCursor(datetime.fromisoformat(ts_str), UUID(id_str))
    except (binascii.Error, UnicodeDecodeError, ValueError) as exc:
        raise ValidationError("Invalid cursor") from exc
