from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar
from uuid import UUID


@dataclass(frozen=True, slots=True)
class MessageCreated:
    EVENT_TYPE: ClassVar[str] = "chat.message_created"

    message_id: UUID
    conversation_id: UUID
    sender_id: int
    text: str

    def payload(self) -> dict[str, Any]:
        return {
            "message_id": str(self.message_id),
            "conversation_id": str(self.conversation_id),
            "sender_id": self.sender_id,
            "text": self.text,
        }
