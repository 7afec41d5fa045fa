from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import UUID

from network_chat.domain.entities.conversation import Conversation
from network_chat.domain.value_objects.message_preview import MessagePreview


class ConversationReader(Protocol):
    async def get_by_id(self, conversation_id: UUID) -> Conversation | None: ...

    async def get_direct_between(
        self, user_a: int, user_b: int,
    ) -> Conversation | None:
        """Find the 1:1 conversation for an unordered pair of users."""
        ...

    async def list_for_user(
        self, user_id: int, *, cursor: str | None = None, limit: int = 20,
    ) -> list[Conversation]:
        """Conversations the user takes part in, most recently updated first."""
        ...


class ConversationWriter(Protocol):
    async def create(self, conversation: Conversation) -> Conversation: ...

    async def create_direct_if_not_exists(
        self, conversation: Conversation,
    ) -> tuple[Conversation, bool]:
        """Insert a 1:1 conversation. If the pair already has one, return it with created=False."""
        ...

    async def update(
        self, conversation: Conversation, *, expected_version: int,
    ) -> Conversation | None:
        """Compare-and-write title, participants and updated_at.

        Returns None if the conversation does not exist; raises StaleWriteError
        on a version mismatch.
        """
        ...

    async def touch(
        self,
        conversation_id: UUID,
        ts: datetime,
        last_message: MessagePreview | None = None,
    ) -> Conversation | None:
        """Atomically move updated_at forward to ts, or one tick past its current value.

        A given last_message replaces the stored preview unless that one is newer.
        """
        ...
