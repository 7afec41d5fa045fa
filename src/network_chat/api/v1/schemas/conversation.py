from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class MessagePreviewResponse(BaseModel):
    message_id: UUID
    sender_id: int
    text: str
    created_at: datetime

    model_config = {"from_attributes": True}


class ConversationResponse(BaseModel):
    id: UUID
    title: str | None
    participants: list[int]
    is_group: bool
    created_at: datetime
    updated_at: datetime
    last_message: MessagePreviewResponse | None = None
    # Filled on reads made by a participant; None on create responses
    unread: int | None = None

    model_config = {"from_attributes": True}


class DirectConversationRequest(BaseModel):
    user_id: int


class GroupConversationRequest(BaseModel):
    title: str | None = Field(None, max_length=200)
    participant_ids: list[int]


class AddParticipantRequest(BaseModel):
    user_id: int


class MarkReadResponse(BaseModel):
    modified: int
