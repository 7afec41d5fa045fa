from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable
from dataclasses import replace

from network_chat.application.cursor import encode_cursor
from network_chat.application.dto.page import Page
from network_chat.application.exceptions import (
    AlreadyMemberError,
    ForbiddenError,
    NotFoundError,
    StaleWriteError,
)
from network_chat.application.policies.permissions import assert_conversation_access
from network_chat.application.policies.rules import (
    assert_distinct_users,
    assert_group,
    validate_group_participants,
)
from network_chat.application.ports.clock import Clock, system_clock
from network_chat.application.repositories.outbox import record_event
from network_chat.application.uow import UnitOfWork
from network_chat.domain.entities.conversation import Conversation
from network_chat.domain.events.conversation_created import ConversationCreated
from network_chat.domain.events.participant_added import ParticipantAdded
from network_chat.domain.timestamps import advance
from network_chat.domain.value_objects.message_preview import MessagePreview

logger = logging.getLogger(__name__)

MAX_WRITE_ATTEMPTS = 3


async def create_direct_conversation(
    user_a: int,
    user_b: int,
    uow: UnitOfWork,
    *,
    require_connection: bool = False,
    clock: Clock = system_clock,
) -> tuple[Conversation, bool]:
    """Return the 1:1 conversation between two users, creating it if needed.

    Returns (conversation, created) where created=True if a new conversation was made.
    With require_connection the pair must have an accepted connection request.
    """
    assert_distinct_users(user_a, user_b, "Cannot start a conversation with yourself")

    existing = await uow.conversations.get_direct_between(user_a, user_b)
    if existing is not None:
        return existing, False

    if require_connection and not await uow.requests.has_accepted_between(user_a, user_b):
        raise ForbiddenError("Users must be connected before starting a conversation")

    now = clock.now()
    conversation = Conversation(
        id=uuid.uuid4(),
        title=None,
        participants=(user_a, user_b),
        is_group=False,
        created_at=now,
        updated_at=now,
    )
    conversation, created = await uow.conversations_w.create_direct_if_not_exists(conversation)
    if not created:
        # A concurrent caller created it between our read and our insert.
        return conversation, False

    await record_event(
        uow.outbox,
        ConversationCreated(
            conversation_id=conversation.id,
            participants=conversation.participants,
            is_group=False,
        ),
    )
    await uow.commit()
    logger.info("Direct conversation %s created for %d and %d", conversation.id, user_a, user_b)
    return conversation, True


async def create_group_conversation(
    title: str | None,
    participant_ids: Iterable[int],
    uow: UnitOfWork,
    *,
    clock: Clock = system_clock,
) -> Conversation:
    participants = validate_group_participants(participant_ids)

    now = clock.now()
    conversation = Conversation(
        id=uuid.uuid4(),
        title=title,
        participants=participants,
        is_group=True,
        created_at=now,
        updated_at=now,
    )
    conversation = await uow.conversations_w.create(conversation)

    await record_event(
        uow.outbox,
        ConversationCreated(
            conversation_id=conversation.id,
            participants=conversation.participants,
            is_group=True,
            title=conversation.title,
        ),
    )
    await uow.commit()
    logger.info(
        "Group conversation %s created with %d participants",
        conversation.id, len(participants),
    )
    return conversation


async def touch(
    conversation_id: uuid.UUID,
    uow: UnitOfWork,
    *,
    clock: Clock = system_clock,
    commit: bool = True,
    last_message: MessagePreview | None = None,
) -> Conversation:
    """Refresh updated_at. Every write path that changes a conversation goes through here
    or through advance() in its own compare-and-write.

    commit=False leaves the commit to a caller that is already inside a unit of work.
    last_message, when given, becomes the inbox preview.
    """
    conversation = await uow.conversations_w.touch(conversation_id, clock.now(), last_message)
    if conversation is None:
        raise NotFoundError("Conversation not found")
    if commit:
        await uow.commit()
    return conversation


async def add_participant(
    conversation_id: uuid.UUID,
    user_id: int,
    uow: UnitOfWork,
    *,
    added_by: int | None = None,
    clock: Clock = system_clock,
) -> Conversation:
    """Append a member to a group conversation and refresh updated_at."""
    attempt = 0
    while True:
        attempt += 1
        conversation = await uow.conversations.get_by_id(conversation_id)
        if added_by is not None:
            conversation = assert_conversation_access(added_by, conversation)
        elif conversation is None:
            raise NotFoundError("Conversation not found")

        assert_group(conversation)
        if conversation.has_member(user_id):
            raise AlreadyMemberError(f"User {user_id} is already a participant")

        grown = replace(
            conversation,
            participants=(*conversation.participants, user_id),
            updated_at=advance(conversation.updated_at, clock.now()),
        )
        try:
            stored = await uow.conversations_w.update(
                grown, expected_version=conversation.version,
            )
        except StaleWriteError:
            # Re-read and re-validate: the concurrent write may have added the same user.
            if attempt >= MAX_WRITE_ATTEMPTS:
                raise
            continue
        if stored is None:
            raise NotFoundError("Conversation not found")
        break

    await record_event(
        uow.outbox,
        ParticipantAdded(conversation_id=stored.id, user_id=user_id, added_by=added_by),
    )
    await uow.commit()
    logger.info("User %d added to conversation %s", user_id, stored.id)
    return stored


async def list_user_conversations(
    user_id: int,
    cursor: str | None,
    limit: int,
    uow: UnitOfWork,
) -> Page[Conversation]:
    items = await uow.conversations.list_for_user(user_id, cursor=cursor, limit=limit)
    next_cursor = None
    if items and len(items) == limit:
        last = items[-1]
        next_cursor = encode_cursor(last.updated_at, last.id)
    return Page(items=items, next_cursor=next_cursor)


async def get_conversation(
    conversation_id: uuid.UUID,
    user_id: int,
    uow: UnitOfWork,
) -> Conversation:
    conversation = await uow.conversations.get_by_id(conversation_id)
    return assert_conversation_access(user_id, conversation)


async def get_direct_conversation_with(
    user_id: int,
    other_id: int,
    uow: UnitOfWork,
) -> Conversation:
    conversation = await uow.conversations.get_direct_between(user_id, other_id)
    if conversation is None:
        raise NotFoundError("No conversation with this user")
    return conversation
