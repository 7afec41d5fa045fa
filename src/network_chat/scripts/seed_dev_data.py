"""Seed development data: users 1-4 with connection requests, chats and messages."""
from __future__ import annotations

import asyncio
import logging
import uuid

from network_chat.config import settings
from network_chat.domain.value_objects.enums import RequestDecision
from network_chat.infrastructure.db.session import AsyncSessionLocal, create_schema
from network_chat.infrastructure.db.uow import SqlAlchemyUoW
from network_chat.logging_config import configure_logging
from network_chat.services import (
    connection_request_service,
    conversation_service,
    message_service,
    read_state_service,
)

logger = logging.getLogger(__name__)


async def seed() -> None:
    await create_schema()

    async with AsyncSessionLocal() as session:
        uow = SqlAlchemyUoW(session)

        accepted = await connection_request_service.create_request(
            1, 2, "Hi! We met at the alumni meetup.", uow,
        )
        await connection_request_service.respond_to_request(
            accepted.id, 2, RequestDecision.ACCEPT, uow,
        )
        await connection_request_service.create_request(
            3, 1, "Would love to connect about the mentoring program.", uow,
        )

        direct, _ = await conversation_service.create_direct_conversation(
            1, 2, uow, require_connection=True,
        )
        for sender_id, text in [
            (1, "Thanks for accepting!"),
            (2, "Of course. How is the new job going?"),
            (1, "Great so far, still learning the codebase."),
        ]:
            await message_service.send_message(direct.id, sender_id, uuid.uuid4(), text, uow)
        # User 2 has caught up; user 1 still has one unread reply
        await read_state_service.mark_all_read(direct.id, 2, uow)

        group = await conversation_service.create_group_conversation(
            "Study group", [1, 2, 3], uow,
        )
        await conversation_service.add_participant(group.id, 4, uow, added_by=1)
        await message_service.send_message(
            group.id, 4, uuid.uuid4(), "Hello everyone!", uow,
        )

        logger.info("Seeded direct chat %s and group chat %s", direct.id, group.id)


def main() -> None:
    configure_logging(settings.LOG_LEVEL)
    asyncio.run(seed())


if __name__ == "__main__":
    main()
