from __future__ import annotations

from typing import Protocol
from uuid import UUID

from network_chat.application.dto.connection_request import RequestFilterDTO
from network_chat.domain.entities.connection_request import ConnectionRequest


class ConnectionRequestReader(Protocol):
    async def get_by_id(self, request_id: UUID) -> ConnectionRequest | None: ...

    async def get_pending_between(
        self, user_a: int, user_b: int,
    ) -> ConnectionRequest | None:
        """Find the pending request between two users, in either direction."""
        ...

    async def has_accepted_between(self, user_a: int, user_b: int) -> bool: ...

    async def list_pending_for(
        self, user_id: int, *, cursor: str | None = None, limit: int = 50,
    ) -> list[ConnectionRequest]:
        """Pending requests addressed to user_id, oldest first (created_at, id)."""
        ...

    async def list_for_user(
        self, user_id: int, filters: RequestFilterDTO,
    ) -> list[ConnectionRequest]: ...


class ConnectionRequestWriter(Protocol):
    async def create_if_no_pending(
        self, request: ConnectionRequest,
    ) -> tuple[ConnectionRequest | None, bool]:
        """Insert a pending request. Return (request, created).

        If another pending request already holds the pair, nothing is written
        and the existing one is returned with created=False. The existing one is
        None when it was answered between the conflicting insert and the re-read.
        """
        ...

    async def update(
        self, request: ConnectionRequest, *, expected_version: int,
    ) -> ConnectionRequest | None:
        """Compare-and-write status, meta and updated_at.

        Returns None if the request does not exist; raises StaleWriteError if
        its stored version is not expected_version.
        """
        ...
