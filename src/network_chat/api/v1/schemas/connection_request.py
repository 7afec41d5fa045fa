from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from network_chat.domain.value_objects.enums import RequestStatus


class CreateConnectionRequest(BaseModel):
    to_user_id: int
    message: str | None = Field(None, max_length=2000)
    meta: dict[str, Any] | None = None


class ConnectionRequestResponse(BaseModel):
    id: UUID
    from_user_id: int
    to_user_id: int
    message: str
    status: RequestStatus
    meta: dict[str, Any]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class MetaPatch(BaseModel):
    meta: dict[str, Any]
