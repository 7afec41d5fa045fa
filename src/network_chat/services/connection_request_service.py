from __future__ import annotations

import logging
import uuid
from collections.abc import AsyncIterator
from dataclasses import replace
from typing import Any

from network_chat.application.cursor import encode_cursor
from network_chat.application.dto.connection_request import RequestFilterDTO
from network_chat.application.dto.page import Page
from network_chat.application.exceptions import (
    DuplicatePendingError,
    InvalidRequestError,
    InvalidTransitionError,
    NotFoundError,
    StaleWriteError,
)
from network_chat.application.policies.permissions import (
    assert_request_access,
    assert_request_recipient,
)
from network_chat.application.policies.rules import assert_distinct_users, assert_pending
from network_chat.application.ports.clock import Clock, system_clock
from network_chat.application.repositories.outbox import record_event
from network_chat.application.uow import UnitOfWork
from network_chat.domain.entities.connection_request import ConnectionRequest
from network_chat.domain.events.connection_request_created import ConnectionRequestCreated
from network_chat.domain.events.connection_request_responded import (
    ConnectionRequestResponded,
)
from network_chat.domain.timestamps import advance
from network_chat.domain.value_objects.enums import RequestBox, RequestDecision, RequestStatus

logger = logging.getLogger(__name__)

MAX_WRITE_ATTEMPTS = 3


async def create_request(
    from_user_id: int,
    to_user_id: int,
    message: str | None,
    uow: UnitOfWork,
    *,
    meta: dict[str, Any] | None = None,
    clock: Clock = system_clock,
) -> ConnectionRequest:
    """Create a pending connection request from one user to another.

    At most one pending request may exist per pair of users, whichever of the
    two sent it. The check is repeated by the store on insert so two racing
    callers cannot both succeed.
    """
    assert_distinct_users(
        from_user_id, to_user_id, "Cannot send a connection request to yourself",
    )

    existing = await uow.requests.get_pending_between(from_user_id, to_user_id)
    if existing is not None:
        raise DuplicatePendingError("A pending request already exists between these users")

    now = clock.now()
    request = ConnectionRequest(
        id=uuid.uuid4(),
        from_user_id=from_user_id,
        to_user_id=to_user_id,
        message=message or "",
        status=RequestStatus.PENDING,
        created_at=now,
        updated_at=now,
        meta=dict(meta or {}),
    )
    request, created = await uow.requests_w.create_if_no_pending(request)
    if not created:
        raise DuplicatePendingError("A pending request already exists between these users")

    await record_event(
        uow.outbox,
        ConnectionRequestCreated(
            request_id=request.id,
            from_user_id=request.from_user_id,
            to_user_id=request.to_user_id,
            message=request.message,
        ),
    )
    await uow.commit()
    logger.info(
        "Connection request %s created: %d -> %d",
        request.id, from_user_id, to_user_id,
    )
    return request


async def respond_to_request(
    request_id: uuid.UUID,
    responder_id: int,
    decision: RequestDecision | str,
    uow: UnitOfWork,
    *,
    clock: Clock = system_clock,
) -> ConnectionRequest:
    """Accept or reject a pending request. Only the recipient may respond, once."""
    try:
        decision = RequestDecision(decision)
    except ValueError as exc:
        raise InvalidRequestError(f"Unknown decision: {decision!r}") from exc

    request = await uow.requests.get_by_id(request_id)
    request = assert_request_recipient(responder_id, request)
    assert_pending(request)

    answered = replace(
        request,
        status=decision.resulting_status,
        updated_at=advance(request.updated_at, clock.now()),
    )
    try:
        stored = await uow.requests_w.update(answered, expected_version=request.version)
    except StaleWriteError as exc:
        raise InvalidTransitionError("Connection request was answered concurrently") from exc
    if stored is None:
        raise NotFoundError("Connection request not found")

    await record_event(
        uow.outbox,
        ConnectionRequestResponded(
            request_id=stored.id,
            from_user_id=stored.from_user_id,
            to_user_id=stored.to_user_id,
            status=stored.status,
        ),
    )
    await uow.commit()
    logger.info("Connection request %s %s by %d", stored.id, stored.status, responder_id)
    return stored


async def list_pending_page(
    user_id: int,
    cursor: str | None,
    limit: int,
    uow: UnitOfWork,
) -> Page[ConnectionRequest]:
    """One page of pending requests addressed to user_id, oldest first."""
    items = await uow.requests.list_pending_for(user_id, cursor=cursor, limit=limit)
    next_cursor = None
    if items and len(items) == limit:
        last = items[-1]
        next_cursor = encode_cursor(last.created_at, last.id)
    return Page(items=items, next_cursor=next_cursor)


async def iter_pending_for(
    user_id: int,
    uow: UnitOfWork,
    *,
    page_size: int = 50,
) -> AsyncIterator[ConnectionRequest]:
    """Yield pending requests addressed to user_id, oldest first.

    Pages are fetched lazily as the caller advances. Every call starts over
    from the oldest pending request.
    """
    if page_size < 1:
        raise InvalidRequestError("page_size must be positive")

    cursor: str | None = None
    while True:
        page = await list_pending_page(user_id, cursor, page_size, uow)
        for request in page.items:
            yield request
        if page.next_cursor is None:
            return
        cursor = page.next_cursor


async def list_requests(
    user_id: int,
    uow: UnitOfWork,
    *,
    box: RequestBox = RequestBox.INCOMING,
    include_resolved: bool = False,
    limit: int = 100,
) -> list[ConnectionRequest]:
    filters = RequestFilterDTO(box=box, include_resolved=include_resolved, limit=limit)
    return await uow.requests.list_for_user(user_id, filters)


async def get_request(
    request_id: uuid.UUID,
    user_id: int,
    uow: UnitOfWork,
) -> ConnectionRequest:
    request = await uow.requests.get_by_id(request_id)
    return assert_request_access(user_id, request)


async def update_request_meta(
    request_id: uuid.UUID,
    actor_id: int,
    meta: dict[str, Any],
    uow: UnitOfWork,
    *,
    clock: Clock = system_clock,
) -> ConnectionRequest:
    """Merge keys into a request's meta. Allowed in every state, for both parties."""
    attempt = 0
    while True:
        attempt += 1
        request = await uow.requests.get_by_id(request_id)
        request = assert_request_access(actor_id, request)

        updated = replace(
            request,
            meta={**request.meta, **meta},
            updated_at=advance(request.updated_at, clock.now()),
        )
        try:
            stored = await uow.requests_w.update(updated, expected_version=request.version)
        except StaleWriteError:
            if attempt >= MAX_WRITE_ATTEMPTS:
                raise
            logger.info("Request %s changed while updating meta, retrying", request_id)
            continue
        if stored is None:
            raise NotFoundError("Connection request not found")
        await uow.commit()
        return stored
