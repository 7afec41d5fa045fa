from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol

from network_chat.application.ports.bus import DomainEvent


@dataclass(frozen=True, slots=True)
class OutboxRecord:
    """Read-model handed to the outbox worker."""

    id: int
    event_type: str
    payload: dict[str, Any]
    attempts: int


class OutboxWriter(Protocol):
    async def add(self, event_type: str, payload: dict[str, Any]) -> None: ...

    async def fetch_pending(self, batch_size: int) -> list[OutboxRecord]:
        """Claim up to batch_size records that are due for delivery."""
        ...

    async def mark_sent(self, ids: list[int]) -> None: ...

    async def mark_failed(
        self, record_id: int, next_retry_at: datetime, error: str,
    ) -> None: ...

    async def mark_dead(self, record_id: int, error: str) -> None:
        """Stop retrying a record. It stays in the table for inspection."""
        ...


async def record_event(outbox: OutboxWriter, event: DomainEvent) -> None:
    """Stage a domain event in the same transaction as the change that caused it."""
    await outbox.add(event.EVENT_TYPE, event.payload())
