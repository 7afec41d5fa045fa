from __future__ import annotations

import uuid

from network_chat.application.policies.permissions import assert_conversation_access
from network_chat.application.ports.clock import Clock, system_clock
from network_chat.application.repositories.outbox import record_event
from network_chat.application.uow import UnitOfWork
from network_chat.domain.entities.message import Message
from network_chat.domain.events.message_created import MessageCreated
from network_chat.domain.value_objects.message_preview import MessagePreview
from network_chat.services import conversation_service


async def send_message(
    conversation_id: uuid.UUID,
    sender_id: int,
    client_msg_id: uuid.UUID,
    text: str,
    uow: UnitOfWork,
    *,
    clock: Clock = system_clock,
) -> tuple[Message, bool]:
    """Create a message idempotently.

    Returns (message, created). If a message with the same client_msg_id
    already exists the existing one is returned with created=False.
    """
    conversation = await uow.conversations.get_by_id(conversation_id)
    assert_conversation_access(sender_id, conversation)

    msg = Message(
        id=uuid.uuid4(),
        conversation_id=conversation_id,
        sender_id=sender_id,
        text=text,
        client_msg_id=client_msg_id,
        created_at=clock.now(),
    )

    msg, created = await uow.messages_w.create_if_not_exists(msg)

    if created:
        await conversation_service.touch(
            conversation_id, uow, clock=clock, commit=False, last_message=MessagePreview.of(msg),
        )
        await record_event(
            uow.outbox,
            MessageCreated(
                message_id=msg.id,
                conversation_id=msg.conversation_id,
                sender_id=msg.sender_id,
                text=msg.text,
            ),
        )
        await uow.commit()

    return msg, created


async def list_messages(
    conversation_id: uuid.UUID,
    user_id: int,
    cursor: str | None,
    limit: int,
    uow: UnitOfWork,
) -> list[Message]:
    conversation = await uow.conversations.get_by_id(conversation_id)
    assert_conversation_access(user_id, conversation)
    return await uow.messages.list_messages(
        conversation_id, cursor=cursor, limit=limit,
    )
