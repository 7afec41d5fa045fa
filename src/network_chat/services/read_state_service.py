from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence

from network_chat.application.policies.permissions import assert_conversation_access
from network_chat.application.ports.clock import Clock, system_clock
from network_chat.application.uow import UnitOfWork

logger = logging.getLogger(__name__)


async def mark_all_read(
    conversation_id: uuid.UUID,
    user_id: int,
    uow: UnitOfWork,
    *,
    clock: Clock = system_clock,
) -> int:
    """Mark every message in the conversation as read by user_id.

    Returns how many messages from other participants were unread before the call.
    """
    conversation = await uow.conversations.get_by_id(conversation_id)
    assert_conversation_access(user_id, conversation)

    latest = await uow.messages.get_latest(conversation_id)
    if latest is None:
        return 0
    state = await uow.read_state.get(conversation_id, user_id)
    if state is not None and state.last_read_message_id == latest.id:
        return 0

    counts = await uow.read_state.unread_counts(user_id, [conversation_id])
    await uow.read_state_w.upsert_last_read(conversation_id, user_id, latest, clock.now())
    await uow.commit()

    modified = counts.get(conversation_id, 0)
    logger.debug("User %d read conversation %s (%d messages)", user_id, conversation_id, modified)
    return modified


async def unread_counts(
    user_id: int,
    conversation_ids: Sequence[uuid.UUID],
    uow: UnitOfWork,
) -> dict[uuid.UUID, int]:
    """Unread message count per conversation, zero included, for the given conversations."""
    if not conversation_ids:
        return {}
    counts = await uow.read_state.unread_counts(user_id, conversation_ids)
    return {cid: counts.get(cid, 0) for cid in conversation_ids}
