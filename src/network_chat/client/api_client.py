"""Async HTTP client for the network chat API.

Every response passes through one interception point (an httpx response hook)
that turns non-2xx statuses into typed errors and runs the unauthorized hook
on 401. ``probe`` opts out of it for diagnostics.
"""
from __future__ import annotations

import inspect
import logging
import uuid
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass
from typing import Any
from uuid import UUID

import httpx

from network_chat.api.v1.schemas.common import PaginatedResponse
from network_chat.api.v1.schemas.connection_request import ConnectionRequestResponse
from network_chat.api.v1.schemas.conversation import ConversationResponse, MarkReadResponse
from network_chat.api.v1.schemas.message import MessageResponse
from network_chat.client.config import ClientSettings
from network_chat.client.exceptions import (
    ApiClientError,
    NetworkUnavailableError,
    NotAuthenticatedError,
    RequestRejectedError,
    ServerError,
)

logger = logging.getLogger(__name__)

UnauthorizedHook = Callable[[], Awaitable[None] | None]

# Request extension marking a call whose status must not be intercepted.
_PROBE = "network_chat.probe"


@dataclass(frozen=True, slots=True)
class ProbeResult:
    ok: bool
    status: int
    data: Any
    text: str | None


def _is_json(response: httpx.Response) -> bool:
    return "application/json" in response.headers.get("content-type", "")


def _error_for(response: httpx.Response) -> ApiClientError:
    payload: Any = None
    detail: str | None = None
    code: str | None = None
    if _is_json(response):
        try:
            payload = response.json()
        except ValueError:
            payload = None
    else:
        # Non-JSON bodies are usually proxy or framework error pages.
        payload = response.text or None

    if isinstance(payload, dict):
        raw_detail = payload.get("detail")
        detail = raw_detail if isinstance(raw_detail, str) else None
        code = payload.get("code")
    message = detail or f"{response.request.method} {response.request.url.path} failed"

    status = response.status_code
    if status == 401:
        return NotAuthenticatedError(message, code=code, status_code=status, payload=payload)
    if status >= 500:
        return ServerError(message, code=code, status_code=status, payload=payload)
    return RequestRejectedError(message, code=code, status_code=status, payload=payload)


class ChatApiClient:
    """Wrapper around the /api/v1 endpoints.

    Session cookies set by the server are kept in the underlying cookie jar and
    sent with every request. A bearer token may be supplied instead.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        *,
        timeout: float = 15.0,
        token: str | None = None,
        on_unauthorized: UnauthorizedHook | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.token = token
        self._on_unauthorized = on_unauthorized
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
            event_hooks={
                "request": [self._attach_credentials],
                "response": [self._intercept],
            },
        )

    @classmethod
    def from_settings(
        cls,
        settings: ClientSettings | None = None,
        **kwargs: Any,
    ) -> ChatApiClient:
        settings = settings or ClientSettings()
        return cls(settings.BASE_URL, timeout=settings.TIMEOUT, **kwargs)

    @property
    def cookies(self) -> httpx.Cookies:
        return self._client.cookies

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> ChatApiClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # -- interception -------------------------------------------------------

    async def _attach_credentials(self, request: httpx.Request) -> None:
        if self.token and "Authorization" not in request.headers:
            request.headers["Authorization"] = f"Bearer {self.token}"
        logger.debug("=> %s %s", request.method, request.url)

    async def _intercept(self, response: httpx.Response) -> None:
        if response.request.extensions.get(_PROBE) or response.is_success:
            return

        await response.aread()
        error = _error_for(response)
        if isinstance(error, NotAuthenticatedError):
            logger.warning("Session rejected by the API, clearing credentials")
            self.token = None
            self._client.cookies.clear()
            if self._on_unauthorized is not None:
                result = self._on_unauthorized()
                if inspect.isawaitable(result):
                    await result
        elif isinstance(error, ServerError):
            logger.error("API error %d on %s", error.status_code, response.request.url.path)
        raise error

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
    ) -> httpx.Response:
        kwargs: dict[str, Any] = {}
        if json is not None:
            kwargs["json"] = json
        if params:
            kwargs["params"] = {k: v for k, v in params.items() if v is not None}
        try:
            return await self._client.request(method, path, **kwargs)
        except httpx.TransportError as exc:
            logger.warning("API unreachable: %s %s: %s", method, path, exc)
            raise NetworkUnavailableError(f"Could not reach {self.base_url}") from exc

    async def probe(
        self,
        path: str,
        *,
        method: str = "GET",
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> ProbeResult:
        """Issue a request that never raises on status. No body is sent when json is None."""
        kwargs: dict[str, Any] = {"headers": headers or {}, "extensions": {_PROBE: True}}
        if json is not None:
            kwargs["json"] = json
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TransportError as exc:
            raise NetworkUnavailableError(f"Could not reach {self.base_url}") from exc

        if _is_json(response):
            try:
                return ProbeResult(response.is_success, response.status_code, response.json(), None)
            except ValueError:
                pass
        return ProbeResult(response.is_success, response.status_code, None, response.text)

    # -- connection requests ------------------------------------------------

    async def send_connection_request(
        self,
        to_user_id: int,
        message: str | None = None,
        *,
        meta: dict[str, Any] | None = None,
    ) -> ConnectionRequestResponse:
        body: dict[str, Any] = {"to_user_id": to_user_id, "message": message}
        if meta is not None:
            body["meta"] = meta
        response = await self._request("POST", "/api/v1/connections/requests", json=body)
        return ConnectionRequestResponse.model_validate(response.json())

    async def list_connection_requests(
        self,
        *,
        box: str = "incoming",
        include_resolved: bool = False,
    ) -> list[ConnectionRequestResponse]:
        response = await self._request(
            "GET",
            "/api/v1/connections/requests",
            params={"box": box, "include_resolved": str(include_resolved).lower()},
        )
        return [ConnectionRequestResponse.model_validate(r) for r in response.json()]

    async def list_pending_requests(
        self,
        cursor: str | None = None,
        limit: int | None = None,
    ) -> PaginatedResponse[ConnectionRequestResponse]:
        response = await self._request(
            "GET",
            "/api/v1/connections/requests/pending",
            params={"cursor": cursor, "limit": limit},
        )
        return PaginatedResponse[ConnectionRequestResponse].model_validate(response.json())

    async def iter_pending_requests(
        self,
        *,
        page_size: int | None = None,
    ) -> AsyncIterator[ConnectionRequestResponse]:
        cursor: str | None = None
        while True:
            page = await self.list_pending_requests(cursor, page_size)
            for item in page.items:
                yield item
            if page.next_cursor is None:
                return
            cursor = page.next_cursor

    async def get_connection_request(self, request_id: UUID) -> ConnectionRequestResponse:
        response = await self._request("GET", f"/api/v1/connections/requests/{request_id}")
        return ConnectionRequestResponse.model_validate(response.json())

    async def accept_request(self, request_id: UUID) -> ConnectionRequestResponse:
        response = await self._request(
            "POST", f"/api/v1/connections/requests/{request_id}/accept",
        )
        return ConnectionRequestResponse.model_validate(response.json())

    async def reject_request(self, request_id: UUID) -> ConnectionRequestResponse:
        response = await self._request(
            "POST", f"/api/v1/connections/requests/{request_id}/reject",
        )
        return ConnectionRequestResponse.model_validate(response.json())

    async def update_request_meta(
        self,
        request_id: UUID,
        meta: dict[str, Any],
    ) -> ConnectionRequestResponse:
        response = await self._request(
            "PATCH",
            f"/api/v1/connections/requests/{request_id}/meta",
            json={"meta": meta},
        )
        return ConnectionRequestResponse.model_validate(response.json())

    # -- conversations ------------------------------------------------------

    async def open_direct_conversation(self, user_id: int) -> ConversationResponse:
        response = await self._request(
            "POST", "/api/v1/chat/conversations/direct", json={"user_id": user_id},
        )
        return ConversationResponse.model_validate(response.json())

    async def create_group_conversation(
        self,
        title: str | None,
        participant_ids: list[int],
    ) -> ConversationResponse:
        response = await self._request(
            "POST",
            "/api/v1/chat/conversations/group",
            json={"title": title, "participant_ids": participant_ids},
        )
        return ConversationResponse.model_validate(response.json())

    async def list_conversations(
        self,
        cursor: str | None = None,
        limit: int | None = None,
    ) -> PaginatedResponse[ConversationResponse]:
        response = await self._request(
            "GET",
            "/api/v1/chat/conversations",
            params={"cursor": cursor, "limit": limit},
        )
        return PaginatedResponse[ConversationResponse].model_validate(response.json())

    async def get_conversation(self, conversation_id: UUID) -> ConversationResponse:
        response = await self._request("GET", f"/api/v1/chat/conversations/{conversation_id}")
        return ConversationResponse.model_validate(response.json())

    async def get_conversation_with(self, user_id: int) -> ConversationResponse:
        response = await self._request("GET", f"/api/v1/chat/conversations/with/{user_id}")
        return ConversationResponse.model_validate(response.json())

    async def add_participant(
        self,
        conversation_id: UUID,
        user_id: int,
    ) -> ConversationResponse:
        response = await self._request(
            "POST",
            f"/api/v1/chat/conversations/{conversation_id}/participants",
            json={"user_id": user_id},
        )
        return ConversationResponse.model_validate(response.json())

    # -- messages -----------------------------------------------------------

    async def list_messages(
        self,
        conversation_id: UUID,
        cursor: str | None = None,
        limit: int | None = None,
    ) -> list[MessageResponse]:
        response = await self._request(
            "GET",
            f"/api/v1/chat/conversations/{conversation_id}/messages",
            params={"cursor": cursor, "limit": limit},
        )
        return [MessageResponse.model_validate(m) for m in response.json()]

    async def send_message(
        self,
        conversation_id: UUID,
        text: str,
        *,
        client_msg_id: UUID | None = None,
    ) -> MessageResponse:
        body = {"client_msg_id": str(client_msg_id or uuid.uuid4()), "text": text}
        response = await self._request(
            "POST",
            f"/api/v1/chat/conversations/{conversation_id}/messages",
            json=body,
        )
        return MessageResponse.model_validate(response.json())

    async def mark_conversation_read(self, conversation_id: UUID) -> int:
        """Mark everything in the conversation read; returns how many messages were unread."""
        response = await self._request(
            "POST", f"/api/v1/chat/conversations/{conversation_id}/read-all",
        )
        return MarkReadResponse.model_validate(response.json()).modified
