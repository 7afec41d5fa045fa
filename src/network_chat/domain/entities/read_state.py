from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True, slots=True)
class ReadState:
    """How far one participant has read a conversation.

    Messages ordered after (last_read_at, last_read_message_id) and sent by
    someone else are unread.
    """

    conversation_id: UUID
    user_id: int
    last_read_message_id: UUID | None
    last_read_at: datetime
    updated_at: datetime
