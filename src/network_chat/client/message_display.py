"""Turn fetched messages into what a chat timeline shows. No I/O happens here."""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from typing import Any, Literal

from network_chat.api.v1.schemas.message import MessageResponse

Alignment = Literal["start", "end"]

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M"


@dataclass(frozen=True, slots=True)
class MessageDisplay:
    text: str
    alignment: Alignment
    is_mine: bool
    timestamp: str


def _field(message: MessageResponse | Mapping[str, Any], *names: str) -> Any:
    for name in names:
        if isinstance(message, Mapping):
            value = message.get(name)
        else:
            value = getattr(message, name, None)
        if value is not None:
            return value
    return None


def format_timestamp(value: datetime | str | float | None, tz: tzinfo | None = None) -> str:
    """Render a creation time for display, in tz (local time when None).

    Numbers are epoch milliseconds, as browser clients send them. Unparseable
    or missing values render as an empty string.
    """
    if isinstance(value, bool):
        return ""
    if isinstance(value, (int, float)):
        try:
            value = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return ""
    elif isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError:
            return ""
    if not isinstance(value, datetime):
        return ""
    return value.astimezone(tz).strftime(TIMESTAMP_FORMAT)


def describe_message(
    message: MessageResponse | Mapping[str, Any],
    is_mine: bool,
    *,
    tz: tzinfo | None = None,
) -> MessageDisplay:
    created_at = _field(message, "created_at", "createdAt")
    return MessageDisplay(
        text=_field(message, "text") or "",
        alignment="end" if is_mine else "start",
        is_mine=is_mine,
        timestamp=format_timestamp(created_at, tz),
    )


def describe_messages(
    messages: Iterable[MessageResponse | Mapping[str, Any]],
    viewer_id: int,
    *,
    tz: tzinfo | None = None,
) -> list[MessageDisplay]:
    return [
        describe_message(m, _field(m, "sender_id", "senderId") == viewer_id, tz=tz)
        for m in messages
    ]
