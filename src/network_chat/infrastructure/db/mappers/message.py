from __future__ import annotations

from network_chat.domain.entities.message import Message
from network_chat.infrastructure.db.models.message import MessageModel


def model_to_entity(model: MessageModel) -> Message:
    return Message(
        id=model.id,
        conversation_id=model.conversation_id,
        sender_id=model.sender_id,
        text=model.text,
        client_msg_id=model.client_msg_id,
        created_at=model.created_at,
    )


def entity_to_model(entity: Message) -> MessageModel:
    return MessageModel(
        id=entity.id,
        conversation_id=entity.conversation_id,
        sender_id=entity.sender_id,
        text=entity.text,
        client_msg_id=entity.client_msg_id,
        created_at=entity.created_at,
    )
