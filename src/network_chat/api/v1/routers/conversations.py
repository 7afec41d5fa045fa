from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Query, Response

from network_chat.api.deps import CurrentPrincipal, UoWDep
from network_chat.api.v1.schemas.common import PaginatedResponse
from network_chat.api.v1.schemas.conversation import (
    AddParticipantRequest,
    ConversationResponse,
    DirectConversationRequest,
    GroupConversationRequest,
)
from network_chat.config import settings
from network_chat.domain.entities.conversation import Conversation
from network_chat.services import conversation_service, read_state_service

router = APIRouter(prefix="/api/v1/chat/conversations", tags=["conversations"])


def _to_response(conversation: Conversation, unread: int | None = None) -> ConversationResponse:
    response = ConversationResponse.model_validate(conversation, from_attributes=True)
    if unread is not None:
        response.unread = unread
    return response


@router.post("/direct", response_model=ConversationResponse)
async def create_direct_conversation(
    body: DirectConversationRequest,
    principal: CurrentPrincipal,
    uow: UoWDep,
    response: Response,
) -> ConversationResponse:
    conv, created = await conversation_service.create_direct_conversation(
        principal.user_id,
        body.user_id,
        uow,
        require_connection=settings.DIRECT_CHAT_REQUIRES_CONNECTION,
    )
    response.status_code = 201 if created else 200
    return _to_response(conv)


@router.post("/group", response_model=ConversationResponse, status_code=201)
async def create_group_conversation(
    body: GroupConversationRequest,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> ConversationResponse:
    participant_ids = list(body.participant_ids)
    if principal.user_id not in participant_ids:
        participant_ids.insert(0, principal.user_id)
    conv = await conversation_service.create_group_conversation(
        body.title, participant_ids, uow,
    )
    return _to_response(conv)


@router.get("", response_model=PaginatedResponse[ConversationResponse])
async def list_conversations(
    principal: CurrentPrincipal,
    uow: UoWDep,
    cursor: str | None = Query(None),
    limit: int = Query(20, ge=1, le=100),
) -> PaginatedResponse[ConversationResponse]:
    page = await conversation_service.list_user_conversations(
        principal.user_id, cursor, limit, uow,
    )
    unread = await read_state_service.unread_counts(
        principal.user_id, [c.id for c in page.items], uow,
    )
    return PaginatedResponse[ConversationResponse](
        items=[_to_response(c, unread[c.id]) for c in page.items],
        next_cursor=page.next_cursor,
    )


@router.get("/with/{user_id}", response_model=ConversationResponse)
async def get_direct_conversation_with(
    user_id: int,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> ConversationResponse:
    conv = await conversation_service.get_direct_conversation_with(
        principal.user_id, user_id, uow,
    )
    unread = await read_state_service.unread_counts(principal.user_id, [conv.id], uow)
    return _to_response(conv, unread[conv.id])


@router.get("/{conversation_id}", response_model=ConversationResponse)
async def get_conversation(
    conversation_id: UUID,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> ConversationResponse:
    conv = await conversation_service.get_conversation(conversation_id, principal.user_id, uow)
    unread = await read_state_service.unread_counts(principal.user_id, [conv.id], uow)
    return _to_response(conv, unread[conv.id])


@router.post("/{conversation_id}/participants", response_model=ConversationResponse)
async def add_participant(
    conversation_id: UUID,
    body: AddParticipantRequest,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> ConversationResponse:
    conv = await conversation_service.add_participant(
        conversation_id, body.user_id, uow, added_by=principal.user_id,
    )
    return _to_response(conv)
