from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from network_chat.domain.entities.message import Message

PREVIEW_LENGTH = 200


@dataclass(frozen=True, slots=True)
class MessagePreview:
    """The latest message of a conversation, as shown in an inbox row."""

    message_id: UUID
    sender_id: int
    text: str
    created_at: datetime

    @classmethod
    def of(cls, message: Message) -> MessagePreview:
        return cls(
            message_id=message.id,
            sender_id=message.sender_id,
            text=message.text[:PREVIEW_LENGTH],
            created_at=message.created_at,
        )
