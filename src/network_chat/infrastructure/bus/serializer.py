"""Wire format for events published on the notification channel.

    {"type": "<event type>", "data": {...}, "published_at": "<iso timestamp>"}
"""
from __future__ import annotations

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import UUID


def _default(o: object) -> Any:
    if isinstance(o, UUID):
        return str(o)
    if isinstance(o, datetime):
        return o.isoformat()
    if isinstance(o, Enum):
        return o.value
    if isinstance(o, (set, frozenset, tuple)):
        return list(o)
    raise TypeError(f"Object of type {type(o).__name__} is not JSON serializable")


def serialize_event(
    event_type: str,
    payload: dict[str, Any],
    *,
    published_at: datetime | None = None,
) -> str:
    envelope = {
        "type": event_type,
        "data": payload,
        "published_at": published_at or datetime.now(timezone.utc),
    }
    return json.dumps(envelope, default=_default)


def deserialize_event(raw: str | bytes) -> tuple[str, dict[str, Any]]:
    envelope = json.loads(raw)
    return envelope["type"], envelope["data"]
