from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID

from network_chat.domain.value_objects.enums import RequestStatus


@dataclass(frozen=True, slots=True)
class ConnectionRequest:
    id: UUID
    from_user_id: int
    to_user_id: int
    message: str
    status: RequestStatus
    created_at: datetime
    updated_at: datetime
    meta: dict[str, Any] = field(default_factory=dict)
    version: int = 1

    @property
    def is_pending(self) -> bool:
        return self.status == RequestStatus.PENDING

    def involves(self, user_id: int) -> bool:
        return user_id in (self.from_user_id, self.to_user_id)
