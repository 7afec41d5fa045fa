from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Query, Response

from network_chat.api.deps import CurrentPrincipal, UoWDep
from network_chat.api.v1.schemas.conversation import MarkReadResponse
from network_chat.api.v1.schemas.message import MessageResponse, SendMessageRequest
from network_chat.services import message_service, read_state_service

router = APIRouter(prefix="/api/v1/chat/conversations", tags=["messages"])


@router.get("/{conversation_id}/messages", response_model=list[MessageResponse])
async def list_messages(
    conversation_id: UUID,
    principal: CurrentPrincipal,
    uow: UoWDep,
    cursor: str | None = Query(None),
    limit: int = Query(50, ge=1, le=200),
) -> list[MessageResponse]:
    messages = await message_service.list_messages(
        conversation_id, principal.user_id, cursor, limit, uow,
    )
    return [MessageResponse.model_validate(m, from_attributes=True) for m in messages]


@router.post("/{conversation_id}/messages", response_model=MessageResponse, status_code=201)
async def send_message(
    conversation_id: UUID,
    body: SendMessageRequest,
    principal: CurrentPrincipal,
    uow: UoWDep,
    response: Response,
) -> MessageResponse:
    msg, created = await message_service.send_message(
        conversation_id,
        principal.user_id,
        body.client_msg_id,
        body.text,
        uow,
    )
    if not created:
        response.status_code = 200
    return MessageResponse.model_validate(msg, from_attributes=True)


@router.post("/{conversation_id}/read-all", response_model=MarkReadResponse)
async def mark_all_read(
    conversation_id: UUID,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> MarkReadResponse:
    modified = await read_state_service.mark_all_read(conversation_id, principal.user_id, uow)
    return MarkReadResponse(modified=modified)
