from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar
from uuid import UUID


@dataclass(frozen=True, slots=True)
class ParticipantAdded:
    EVENT_TYPE: ClassVar[str] = "chat.participant_added"

    conversation_id: UUID
    user_id: int
    added_by: int | None = None

    def payload(self) -> dict[str, Any]:
        return {
            "conversation_id": str(self.conversation_id),
            "user_id": self.user_id,
            "added_by": self.added_by,
        }
