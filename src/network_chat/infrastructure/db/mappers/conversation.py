from __future__ import annotations

from network_chat.domain.entities.conversation import Conversation
from network_chat.domain.value_objects.message_preview import MessagePreview
from network_chat.domain.value_objects.pair import pair_key
from network_chat.infrastructure.db.models.conversation import ConversationModel


def direct_key_for(entity: Conversation) -> str | None:
    if entity.is_group:
        return None
    return pair_key(*entity.participants)


def _preview(model: ConversationModel) -> MessagePreview | None:
    if model.last_message_id is None:
        return None
    return MessagePreview(
        message_id=model.last_message_id,
        sender_id=model.last_message_sender_id,
        text=model.last_message_text or "",
        created_at=model.last_message_at,
    )


def model_to_entity(model: ConversationModel) -> Conversation:
    return Conversation(
        id=model.id,
        title=model.title,
        participants=tuple(model.participants),
        is_group=model.is_group,
        created_at=model.created_at,
        updated_at=model.updated_at,
        version=model.version,
        last_message=_preview(model),
    )


def entity_to_model(entity: Conversation) -> ConversationModel:
    preview = entity.last_message
    return ConversationModel(
        id=entity.id,
        title=entity.title,
        participants=list(entity.participants),
        is_group=entity.is_group,
        direct_key=direct_key_for(entity),
        version=entity.version,
        last_message_id=preview.message_id if preview else None,
        last_message_sender_id=preview.sender_id if preview else None,
        last_message_text=preview.text if preview else None,
        last_message_at=preview.created_at if preview else None,
        created_at=entity.created_at,
        updated_at=entity.updated_at,
    )
