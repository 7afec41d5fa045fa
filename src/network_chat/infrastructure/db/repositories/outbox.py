from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import or_, select, update

from network_chat.application.repositories.outbox import OutboxRecord
from network_chat.infrastructure.db.models.outbox import (
    DELIVERABLE,
    OutboxMessageModel,
    OutboxStatus,
)
from network_chat.infrastructure.db.repositories._base import SessionRepo

# Errors are stored for inspection only
MAX_ERROR_LENGTH = 1000


class OutboxWriterRepo(SessionRepo):
    async def add(self, event_type: str, payload: dict[str, Any]) -> None:
        self._session.add(OutboxMessageModel(event_type=event_type, payload=payload))
        await self._flush()

    async def fetch_pending(self, batch_size: int) -> list[OutboxRecord]:
        now = datetime.now(timezone.utc)
        claimable = (
            select(OutboxMessageModel.id)
            .where(
                OutboxMessageModel.status.in_(DELIVERABLE),
                or_(
                    OutboxMessageModel.next_retry_at.is_(None),
                    OutboxMessageModel.next_retry_at <= now,
                ),
            )
            .order_by(OutboxMessageModel.created_at, OutboxMessageModel.id)
            .limit(batch_size)
            .with_for_update(skip_locked=True)
        )
        # Claim and read in one statement so two workers never share a record.
        stmt = (
            update(OutboxMessageModel)
            .where(OutboxMessageModel.id.in_(claimable.scalar_subquery()))
            .values(status=OutboxStatus.PROCESSING)
            .returning(OutboxMessageModel)
        )
        result = await self._execute(stmt)
        rows = sorted(result.scalars().all(), key=lambda r: (r.created_at, r.id))
        return [
            OutboxRecord(
                id=r.id,
                event_type=r.event_type,
                payload=r.payload,
                attempts=r.attempts,
            )
            for r in rows
        ]

    async def mark_sent(self, ids: list[int]) -> None:
        if not ids:
            return
        await self._execute(
            update(OutboxMessageModel)
            .where(OutboxMessageModel.id.in_(ids))
            .values(status=OutboxStatus.SENT, last_error=None)
        )

    async def mark_failed(self, record_id: int, next_retry_at: datetime, error: str) -> None:
        await self._execute(
            update(OutboxMessageModel)
            .where(OutboxMessageModel.id == record_id)
            .values(
                status=OutboxStatus.FAILED,
                attempts=OutboxMessageModel.attempts + 1,
                next_retry_at=next_retry_at,
                last_error=error[:MAX_ERROR_LENGTH],
            )
        )

    async def mark_dead(self, record_id: int, error: str) -> None:
        await self._execute(
            update(OutboxMessageModel)
            .where(OutboxMessageModel.id == record_id)
            .values(status=OutboxStatus.DEAD, last_error=error[:MAX_ERROR_LENGTH])
        )
