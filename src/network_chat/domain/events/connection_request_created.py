from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar
from uuid import UUID


@dataclass(frozen=True, slots=True)
class ConnectionRequestCreated:
    EVENT_TYPE: ClassVar[str] = "connection.request_created"

    request_id: UUID
    from_user_id: int
    to_user_id: int
    message: str

    def payload(self) -> dict[str, Any]:
        return {
            "request_id": str(self.request_id),
            "from_user_id": self.from_user_id,
            "to_user_id": self.to_user_id,
            "message": self.message,
        }
