from __future__ import annotations

import json
import uuid

import httpx
import pytest

from network_chat.client.api_client import ChatApiClient
from network_chat.client.config import ClientSettings
from network_chat.client.exceptions import (
    NetworkUnavailableError,
    NotAuthenticatedError,
    RequestRejectedError,
    ServerError,
)

BASE_URL = "http://api.test"


def _request_json(request_id: str | None = None, **overrides) -> dict:
    data = {
        "id": request_id or str(uuid.uuid4()),
        "from_user_id": 1,
        "to_user_id": 2,
        "message": "hi",
        "status": "pending",
        "meta": {},
        "created_at": "2024-05-01T12:00:00+00:00",
        "updated_at": "2024-05-01T12:00:00+00:00",
    }
    data.update(overrides)
    return data


def _client(handler, **kwargs) -> ChatApiClient:
    return ChatApiClient(BASE_URL, transport=httpx.MockTransport(handler), **kwargs)


@pytest.mark.asyncio
async def test_success_returns_typed_model_and_sends_bearer():
    seen: dict = {}

    async def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers.get("Authorization")
        seen["body"] = json.loads(request.content.decode())
        seen["path"] = request.url.path
        return httpx.Response(201, json=_request_json(message="hello"))

    async with _client(handler, token="abc") as client:
        req = await client.send_connection_request(2, "hello")

    assert req.message == "hello"
    assert req.status == "pending"
    assert seen["auth"] == "Bearer abc"
    assert seen["path"] == "/api/v1/connections/requests"
    assert seen["body"] == {"to_user_id": 2, "message": "hello"}


@pytest.mark.asyncio
async def test_session_cookie_carried_on_later_requests():
    cookies_seen: list[str | None] = []

    async def handler(request: httpx.Request) -> httpx.Response:
        cookies_seen.append(request.headers.get("Cookie"))
        return httpx.Response(
            200,
            json=[],
            headers={"Set-Cookie": "token=session123; Path=/"},
        )

    async with _client(handler) as client:
        await client.list_connection_requests()
        await client.list_connection_requests(box="outgoing", include_resolved=True)

    assert cookies_seen[0] is None
    assert cookies_seen[1] == "token=session123"


@pytest.mark.asyncio
async def test_unauthorized_runs_hook_and_clears_credentials():
    calls: list[str] = []

    async def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(
            401,
            json={"detail": "Not authenticated"},
            headers={"Set-Cookie": "token=stale; Path=/"},
        )

    async with _client(handler, token="expired", on_unauthorized=lambda: calls.append("sync")) as client:
        with pytest.raises(NotAuthenticatedError) as exc:
            await client.list_connection_requests()

        assert client.token is None
        assert len(client.cookies) == 0

    assert calls == ["sync"]
    assert exc.value.status_code == 401
    assert exc.value.retryable is False


@pytest.mark.asyncio
async def test_unauthorized_hook_may_be_async():
    calls: list[str] = []

    async def on_unauthorized() -> None:
        calls.append("async")

    async def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"detail": "expired"})

    async with _client(handler, on_unauthorized=on_unauthorized) as client:
        with pytest.raises(NotAuthenticatedError):
            await client.get_conversation(uuid.uuid4())

    assert calls == ["async"]


@pytest.mark.asyncio
async def test_business_rule_rejection_carries_server_payload():
    hook_calls: list[str] = []

    async def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(
            409,
            json={"detail": "A pending request already exists", "code": "duplicate_pending"},
        )

    async with _client(handler, on_unauthorized=lambda: hook_calls.append("x")) as client:
        with pytest.raises(RequestRejectedError) as exc:
            await client.send_connection_request(2)

    assert exc.value.code == "duplicate_pending"
    assert exc.value.status_code == 409
    assert str(exc.value) == "A pending request already exists"
    assert exc.value.payload == {
        "detail": "A pending request already exists",
        "code": "duplicate_pending",
    }
    assert hook_calls == []


@pytest.mark.asyncio
async def test_non_json_error_keeps_raw_text():
    async def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(404, text="<html>Cannot GET</html>", headers={"content-type": "text/html"})

    async with _client(handler) as client:
        with pytest.raises(RequestRejectedError) as exc:
            await client.get_connection_request(uuid.uuid4())

    assert exc.value.payload == "<html>Cannot GET</html>"
    assert exc.value.code is None


@pytest.mark.asyncio
async def test_server_error_is_retryable():
    async def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(503, json={"detail": "Store unavailable", "code": "store_unavailable"})

    async with _client(handler) as client:
        with pytest.raises(ServerError) as exc:
            await client.list_conversations()

    assert exc.value.retryable is True
    assert exc.value.code == "store_unavailable"


@pytest.mark.asyncio
async def test_transport_failure_is_network_unavailable():
    async def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with _client(handler) as client:
        with pytest.raises(NetworkUnavailableError) as exc:
            await client.list_conversations()

    assert exc.value.retryable is True


@pytest.mark.asyncio
async def test_probe_never_raises_on_status_and_skips_hook():
    calls: list[str] = []
    bodies: list[bytes] = []

    async def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(request.content)
        return httpx.Response(401, json={"detail": "nope"})

    async with _client(handler, token="t", on_unauthorized=lambda: calls.append("x")) as client:
        result = await client.probe("/api/v1/connections/requests", method="POST")
        assert client.token == "t"

    assert result.ok is False
    assert result.status == 401
    assert result.data == {"detail": "nope"}
    assert result.text is None
    assert bodies == [b""]
    assert calls == []


@pytest.mark.asyncio
async def test_probe_returns_text_for_non_json():
    async def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="pong", headers={"content-type": "text/plain"})

    async with _client(handler) as client:
        result = await client.probe("/healthz")

    assert result.ok is True
    assert result.data is None
    assert result.text == "pong"


@pytest.mark.asyncio
async def test_iter_pending_requests_follows_cursor():
    pages = {
        None: {"items": [_request_json(), _request_json()], "next_cursor": "c1"},
        "c1": {"items": [_request_json()], "next_cursor": None},
    }
    cursors: list[str | None] = []

    async def handler(request: httpx.Request) -> httpx.Response:
        cursor = request.url.params.get("cursor")
        cursors.append(cursor)
        return httpx.Response(200, json=pages[cursor])

    async with _client(handler) as client:
        items = [r async for r in client.iter_pending_requests(page_size=2)]

    assert len(items) == 3
    assert cursors == [None, "c1"]


@pytest.mark.asyncio
async def test_send_message_generates_client_msg_id():
    conversation_id = uuid.uuid4()
    sent: dict = {}

    async def handler(request: httpx.Request) -> httpx.Response:
        sent.update(json.loads(request.content.decode()))
        return httpx.Response(
            201,
            json={
                "id": str(uuid.uuid4()),
                "conversation_id": str(conversation_id),
                "sender_id": 1,
                "text": sent["text"],
                "client_msg_id": sent["client_msg_id"],
                "created_at": "2024-05-01T12:00:00+00:00",
            },
        )

    async with _client(handler) as client:
        msg = await client.send_message(conversation_id, "hello")

    assert msg.text == "hello"
    assert uuid.UUID(sent["client_msg_id"]) == msg.client_msg_id


def test_from_settings_strips_trailing_slash(monkeypatch):
    monkeypatch.setenv("CHAT_API_BASE_URL", "http://chat.example.com/")

    client = ChatApiClient.from_settings(ClientSettings())

    assert client.base_url == "http://chat.example.com"


@pytest.mark.asyncio
async def test_mark_conversation_read_returns_modified_count():
    conversation_id = uuid.uuid4()
    seen: dict = {}

    async def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["path"] = request.url.path
        return httpx.Response(200, json={"modified": 3})

    async with _client(handler) as client:
        modified = await client.mark_conversation_read(conversation_id)

    assert modified == 3
    assert seen == {
        "method": "POST",
        "path": f"/api/v1/chat/conversations/{conversation_id}/read-all",
    }


@pytest.mark.asyncio
async def test_conversation_listing_carries_unread_and_preview():
    conversation_id = uuid.uuid4()
    message_id = uuid.uuid4()

    async def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={
            "items": [{
                "id": str(conversation_id),
                "title": None,
                "participants": [1, 2],
                "is_group": False,
                "created_at": "2024-05-01T12:00:00+00:00",
                "updated_at": "2024-05-01T12:05:00+00:00",
                "last_message": {
                    "message_id": str(message_id),
                    "sender_id": 2,
                    "text": "see you",
                    "created_at": "2024-05-01T12:05:00+00:00",
                },
                "unread": 1,
            }],
            "next_cursor": None,
        })

    async with _client(handler) as client:
        page = await client.list_conversations()

    row = page.items[0]
    assert row.unread == 1
    assert row.last_message.message_id == message_id
    assert row.last_message.text == "see you"
