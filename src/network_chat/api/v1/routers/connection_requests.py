from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Query

from network_chat.api.deps import CurrentPrincipal, UoWDep
from network_chat.api.v1.schemas.common import PaginatedResponse
from network_chat.api.v1.schemas.connection_request import (
    ConnectionRequestResponse,
    CreateConnectionRequest,
    MetaPatch,
)
from network_chat.config import settings
from network_chat.domain.entities.connection_request import ConnectionRequest
from network_chat.domain.value_objects.enums import RequestBox, RequestDecision
from network_chat.services import connection_request_service

router = APIRouter(prefix="/api/v1/connections/requests", tags=["connections"])


def _to_response(request: ConnectionRequest) -> ConnectionRequestResponse:
    return ConnectionRequestResponse.model_validate(request, from_attributes=True)


@router.post("", response_model=ConnectionRequestResponse, status_code=201)
async def create_request(
    body: CreateConnectionRequest,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> ConnectionRequestResponse:
    request = await connection_request_service.create_request(
        principal.user_id, body.to_user_id, body.message, uow, meta=body.meta,
    )
    return _to_response(request)


@router.get("", response_model=list[ConnectionRequestResponse])
async def list_requests(
    principal: CurrentPrincipal,
    uow: UoWDep,
    box: RequestBox = Query(RequestBox.INCOMING),
    include_resolved: bool = Query(False),
    limit: int = Query(100, ge=1, le=500),
) -> list[ConnectionRequestResponse]:
    requests = await connection_request_service.list_requests(
        principal.user_id, uow, box=box, include_resolved=include_resolved, limit=limit,
    )
    return [_to_response(r) for r in requests]


@router.get("/pending", response_model=PaginatedResponse[ConnectionRequestResponse])
async def list_pending(
    principal: CurrentPrincipal,
    uow: UoWDep,
    cursor: str | None = Query(None),
    limit: int = Query(settings.PENDING_PAGE_SIZE, ge=1, le=200),
) -> PaginatedResponse[ConnectionRequestResponse]:
    page = await connection_request_service.list_pending_page(
        principal.user_id, cursor, limit, uow,
    )
    return PaginatedResponse[ConnectionRequestResponse](
        items=[_to_response(r) for r in page.items],
        next_cursor=page.next_cursor,
    )


@router.get("/{request_id}", response_model=ConnectionRequestResponse)
async def get_request(
    request_id: UUID,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> ConnectionRequestResponse:
    request = await connection_request_service.get_request(request_id, principal.user_id, uow)
    return _to_response(request)


@router.post("/{request_id}/accept", response_model=ConnectionRequestResponse)
async def accept_request(
    request_id: UUID,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> ConnectionRequestResponse:
    request = await connection_request_service.respond_to_request(
        request_id, principal.user_id, RequestDecision.ACCEPT, uow,
    )
    return _to_response(request)


@router.post("/{request_id}/reject", response_model=ConnectionRequestResponse)
async def reject_request(
    request_id: UUID,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> ConnectionRequestResponse:
    request = await connection_request_service.respond_to_request(
        request_id, principal.user_id, RequestDecision.REJECT, uow,
    )
    return _to_response(request)


@router.patch("/{request_id}/meta", response_model=ConnectionRequestResponse)
async def update_meta(
    request_id: UUID,
    body: MetaPatch,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> ConnectionRequestResponse:
    request = await connection_request_service.update_request_meta(
        request_id, principal.user_id, body.meta, uow,
    )
    return _to_response(request)
