from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Protocol
from uuid import UUID

from network_chat.domain.entities.message import Message
from network_chat.domain.entities.read_state import ReadState


class ReadStateReader(Protocol):
    async def get(self, conversation_id: UUID, user_id: int) -> ReadState | None: ...

    async def unread_counts(
        self, user_id: int, conversation_ids: Sequence[UUID],
    ) -> dict[UUID, int]:
        """Messages from other participants past the user's read position.

        Conversations with nothing unread are left out of the result.
        """
        ...


class ReadStateWriter(Protocol):
    async def upsert_last_read(
        self,
        conversation_id: UUID,
        user_id: int,
        last_message: Message,
        read_at: datetime,
    ) -> None:
        """Move the read position forward to last_message. It never moves back."""
        ...
