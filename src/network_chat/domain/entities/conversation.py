from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from network_chat.domain.value_objects.message_preview import MessagePreview


@dataclass(frozen=True, slots=True)
class Conversation:
    id: UUID
    title: str | None
    participants: tuple[int, ...]
    is_group: bool
    created_at: datetime
    updated_at: datetime
    version: int = 1
    last_message: MessagePreview | None = None

    def has_member(self, user_id: int) -> bool:
        return user_id in self.participants
