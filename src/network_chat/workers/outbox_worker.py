"""Outbox worker: polls pending outbox records, publishes via Redis Pub/Sub."""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone

import redis.asyncio as aioredis

from network_chat.application.ports.bus import EventPublisher
from network_chat.application.uow import UnitOfWork
from network_chat.config import settings
from network_chat.infrastructure.bus.redis_pubsub import RedisPubSubPublisher
from network_chat.infrastructure.db.session import AsyncSessionLocal
from network_chat.infrastructure.db.uow import SqlAlchemyUoW
from network_chat.logging_config import configure_logging

logger = logging.getLogger(__name__)

BASE_DELAY_SECONDS = 5
MAX_DELAY_SECONDS = 300


def calc_backoff(attempts: int, now: datetime | None = None) -> datetime:
    delay = min(BASE_DELAY_SECONDS * (2 ** attempts), MAX_DELAY_SECONDS)
    return (now or datetime.now(timezone.utc)) + timedelta(seconds=delay)


async def run_outbox_worker() -> None:
    redis = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
    publisher = RedisPubSubPublisher(redis)

    logger.info(
        "Outbox worker started (poll=%.1fs, batch=%d, max_attempts=%d)",
        settings.OUTBOX_POLL_INTERVAL,
        settings.OUTBOX_BATCH_SIZE,
        settings.OUTBOX_MAX_ATTEMPTS,
    )

    try:
        while True:
            try:
                async with AsyncSessionLocal() as session:
                    await process_batch(SqlAlchemyUoW(session), publisher)
            except Exception:
                logger.exception("Outbox worker loop error")
            await asyncio.sleep(settings.OUTBOX_POLL_INTERVAL)
    finally:
        await redis.aclose()


async def process_batch(
    uow: UnitOfWork,
    publisher: EventPublisher,
    *,
    batch_size: int | None = None,
    max_attempts: int | None = None,
    channel: str | None = None,
) -> list[int]:
    """Publish one batch of outbox records. Returns the ids marked as sent."""
    batch_size = batch_size or settings.OUTBOX_BATCH_SIZE
    max_attempts = max_attempts or settings.OUTBOX_MAX_ATTEMPTS
    channel = channel or settings.REDIS_PUBSUB_CHANNEL

    batch = await uow.outbox.fetch_pending(batch_size)
    if not batch:
        return []

    sent_ids: list[int] = []
    for record in batch:
        try:
            await publisher.publish(channel, record.event_type, record.payload)
        except Exception as exc:
            attempts = record.attempts + 1
            if attempts >= max_attempts:
                logger.error(
                    "Giving up on outbox record %d (%s) after %d attempts: %s",
                    record.id, record.event_type, attempts, exc,
                )
                await uow.outbox.mark_dead(record.id, repr(exc))
            else:
                logger.exception("Failed to publish outbox record %d", record.id)
                await uow.outbox.mark_failed(record.id, calc_backoff(record.attempts), repr(exc))
            continue
        sent_ids.append(record.id)

    if sent_ids:
        await uow.outbox.mark_sent(sent_ids)

    await uow.commit()
    if sent_ids:
        logger.info("Published %d outbox records", len(sent_ids))
    return sent_ids


def main() -> None:
    configure_logging(settings.LOG_LEVEL)
    asyncio.run(run_outbox_worker())


if __name__ == "__main__":
    main()
