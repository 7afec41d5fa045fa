from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class SendMessageRequest(BaseModel):
    client_msg_id: UUID
    text: str = Field(..., min_length=1, max_length=4000)


class MessageResponse(BaseModel):
    id: UUID
    conversation_id: UUID
    sender_id: int
    text: str
    client_msg_id: UUID
    created_at: datetime

    model_config = {"from_attributes": True}
