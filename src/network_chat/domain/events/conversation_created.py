from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar
from uuid import UUID


@dataclass(frozen=True, slots=True)
class ConversationCreated:
    EVENT_TYPE: ClassVar[str] = "chat.conversation_created"

    conversation_id: UUID
    participants: tuple[int, ...]
    is_group: bool
    title: str | None = None

    def payload(self) -> dict[str, Any]:
        return {
            "conversation_id": str(self.conversation_id),
            "participants": list(self.participants),
            "is_group": self.is_group,
            "title": self.title,
        }
