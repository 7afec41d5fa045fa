from __future__ import annotations

from network_chat.domain.entities.read_state import ReadState
from network_chat.infrastructure.db.models.read_state import ReadStateModel


def model_to_entity(model: ReadStateModel) -> ReadState:
    return ReadState(
        conversation_id=model.conversation_id,
        user_id=model.user_id,
        last_read_message_id=model.last_read_message_id,
        last_read_at=model.last_read_at,
        updated_at=model.updated_at,
    )
