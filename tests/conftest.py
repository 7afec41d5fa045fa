"""Shared test fixtures."""
from __future__ import annotations

import uuid
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID

import pytest

from network_chat.application.cursor import decode_cursor
from network_chat.application.dto.connection_request import RequestFilterDTO
from network_chat.application.exceptions import StaleWriteError
from network_chat.application.repositories.outbox import OutboxRecord
from network_chat.domain.entities.connection_request import ConnectionRequest
from network_chat.domain.entities.conversation import Conversation
from network_chat.domain.entities.message import Message
from network_chat.domain.entities.read_state import ReadState
from network_chat.domain.timestamps import advance
from network_chat.domain.value_objects.enums import RequestBox, RequestStatus
from network_chat.domain.value_objects.message_preview import MessagePreview
from network_chat.domain.value_objects.pair import pair_key

T0 = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

ALICE = 1
BOB = 2
CAROL = 3
DAVE = 4


class FixedClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime = T0) -> None:
        self._now = now

    def now(self) -> datetime:
        return self._now

    def set(self, now: datetime) -> None:
        self._now = now

    def advance(self, **kwargs: float) -> datetime:
        self._now += timedelta(**kwargs)
        return self._now


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


def make_request(
    *,
    from_user_id: int = ALICE,
    to_user_id: int = BOB,
    status: RequestStatus = RequestStatus.PENDING,
    created_at: datetime = T0,
    message: str = "",
    meta: dict[str, Any] | None = None,
) -> ConnectionRequest:
    return ConnectionRequest(
        id=uuid.uuid4(),
        from_user_id=from_user_id,
        to_user_id=to_user_id,
        message=message,
        status=status,
        created_at=created_at,
        updated_at=created_at,
        meta=meta or {},
    )


def make_conversation(
    *,
    participants: tuple[int, ...] = (ALICE, BOB),
    is_group: bool = False,
    title: str | None = None,
    updated_at: datetime = T0,
) -> Conversation:
    return Conversation(
        id=uuid.uuid4(),
        title=title,
        participants=participants,
        is_group=is_group,
        created_at=T0,
        updated_at=updated_at,
    )


def make_message(
    *,
    conversation_id: UUID | None = None,
    sender_id: int = ALICE,
    text: str = "hello",
    created_at: datetime = T0,
) -> Message:
    return Message(
        id=uuid.uuid4(),
        conversation_id=conversation_id or uuid.uuid4(),
        sender_id=sender_id,
        text=text,
        client_msg_id=uuid.uuid4(),
        created_at=created_at,
    )


def _after_cursor(items: list, cursor: str | None, key: Callable, *, descending: bool = False):
    if not cursor:
        return items
    ts, uid = decode_cursor(cursor)
    if descending:
        return [i for i in items if key(i) < ts or (key(i) == ts and i.id > uid)]
    return [i for i in items if key(i) > ts or (key(i) == ts and i.id > uid)]


@dataclass
class FakeRequestReader:
    _store: dict[UUID, ConnectionRequest] = field(default_factory=dict)

    def add(self, *requests: ConnectionRequest) -> None:
        for r in requests:
            self._store[r.id] = r

    async def get_by_id(self, request_id: UUID) -> ConnectionRequest | None:
        return self._store.get(request_id)

    async def get_pending_between(self, user_a: int, user_b: int) -> ConnectionRequest | None:
        key = pair_key(user_a, user_b)
        for r in self._store.values():
            if r.is_pending and pair_key(r.from_user_id, r.to_user_id) == key:
                return r
        return None

    async def has_accepted_between(self, user_a: int, user_b: int) -> bool:
        return any(
            r.status == RequestStatus.ACCEPTED
            and {r.from_user_id, r.to_user_id} == {user_a, user_b}
            for r in self._store.values()
        )

    async def list_pending_for(
        self, user_id: int, *, cursor: str | None = None, limit: int = 50,
    ) -> list[ConnectionRequest]:
        items = sorted(
            (r for r in self._store.values() if r.to_user_id == user_id and r.is_pending),
            key=lambda r: (r.created_at, r.id),
        )
        return _after_cursor(items, cursor, lambda r: r.created_at)[:limit]

    async def list_for_user(
        self, user_id: int, filters: RequestFilterDTO,
    ) -> list[ConnectionRequest]:
        if filters.box == RequestBox.OUTGOING:
            items = [r for r in self._store.values() if r.from_user_id == user_id]
        else:
            items = [r for r in self._store.values() if r.to_user_id == user_id]
        if not filters.include_resolved:
            items = [r for r in items if r.is_pending]
        items.sort(key=lambda r: r.created_at, reverse=True)
        return items[:filters.limit]


@dataclass
class FakeRequestWriter:
    _reader: FakeRequestReader
    # Called once before the next update to simulate a concurrent writer.
    before_update: Callable[[], None] | None = None
    create_calls: int = 0

    async def create_if_no_pending(
        self, request: ConnectionRequest,
    ) -> tuple[ConnectionRequest, bool]:
        self.create_calls += 1
        existing = await self._reader.get_pending_between(
            request.from_user_id, request.to_user_id,
        )
        if existing is not None:
            return existing, False
        self._reader._store[request.id] = request
        return request, True

    async def update(
        self, request: ConnectionRequest, *, expected_version: int,
    ) -> ConnectionRequest | None:
        if self.before_update is not None:
            hook, self.before_update = self.before_update, None
            hook()
        stored = self._reader._store.get(request.id)
        if stored is None:
            return None
        if stored.version != expected_version:
            raise StaleWriteError("Connection request was modified concurrently")
        written = replace(
            stored,
            status=request.status,
            meta=dict(request.meta),
            updated_at=request.updated_at,
            version=expected_version + 1,
        )
        self._reader._store[request.id] = written
        return written


@dataclass
class FakeConversationReader:
    _store: dict[UUID, Conversation] = field(default_factory=dict)

    def add(self, *conversations: Conversation) -> None:
        for c in conversations:
            self._store[c.id] = c

    async def get_by_id(self, conversation_id: UUID) -> Conversation | None:
        return self._store.get(conversation_id)

    async def get_direct_between(self, user_a: int, user_b: int) -> Conversation | None:
        for c in self._store.values():
            if not c.is_group and set(c.participants) == {user_a, user_b}:
                return c
        return None

    async def list_for_user(
        self, user_id: int, *, cursor: str | None = None, limit: int = 20,
    ) -> list[Conversation]:
        items = [c for c in self._store.values() if c.has_member(user_id)]
        items.sort(key=lambda c: c.id)
        items.sort(key=lambda c: c.updated_at, reverse=True)
        return _after_cursor(items, cursor, lambda c: c.updated_at, descending=True)[:limit]


@dataclass
class FakeConversationWriter:
    _reader: FakeConversationReader
    before_update: Callable[[], None] | None = None
    # Simulates a row inserted by another caller between read and insert.
    race_direct: Conversation | None = None

    async def create(self, conversation: Conversation) -> Conversation:
        self._reader._store[conversation.id] = conversation
        return conversation

    async def create_direct_if_not_exists(
        self, conversation: Conversation,
    ) -> tuple[Conversation, bool]:
        if self.race_direct is not None:
            self._reader.add(self.race_direct)
            self.race_direct = None
        existing = await self._reader.get_direct_between(*conversation.participants)
        if existing is not None:
            return existing, False
        self._reader._store[conversation.id] = conversation
        return conversation, True

    async def update(
        self, conversation: Conversation, *, expected_version: int,
    ) -> Conversation | None:
        if self.before_update is not None:
            hook, self.before_update = self.before_update, None
            hook()
        stored = self._reader._store.get(conversation.id)
        if stored is None:
            return None
        if stored.version != expected_version:
            raise StaleWriteError("Conversation was modified concurrently")
        written = replace(
            stored,
            title=conversation.title,
            participants=conversation.participants,
            updated_at=conversation.updated_at,
            version=expected_version + 1,
        )
        self._reader._store[conversation.id] = written
        return written

    async def touch(
        self,
        conversation_id: UUID,
        ts: datetime,
        last_message: MessagePreview | None = None,
    ) -> Conversation | None:
        stored = self._reader._store.get(conversation_id)
        if stored is None:
            return None
        preview = stored.last_message
        if last_message is not None and (
            preview is None or preview.created_at <= last_message.created_at
        ):
            preview = last_message
        written = replace(
            stored,
            updated_at=advance(stored.updated_at, ts),
            version=stored.version + 1,
            last_message=preview,
        )
        self._reader._store[conversation_id] = written
        return written


@dataclass
class FakeMessageReader:
    _messages: list[Message] = field(default_factory=list)

    async def list_messages(
        self, conversation_id: UUID, *, cursor: str | None = None, limit: int = 50,
    ) -> list[Message]:
        items = sorted(
            (m for m in self._messages if m.conversation_id == conversation_id),
            key=lambda m: (m.created_at, m.id),
        )
        return _after_cursor(items, cursor, lambda m: m.created_at)[:limit]

    async def get_latest(self, conversation_id: UUID) -> Message | None:
        items = [m for m in self._messages if m.conversation_id == conversation_id]
        return max(items, key=lambda m: (m.created_at, m.id), default=None)


@dataclass
class FakeMessageWriter:
    _reader: FakeMessageReader

    async def create_if_not_exists(self, message: Message) -> tuple[Message, bool]:
        existing = await self.get_by_client_msg_id(
            message.conversation_id, message.sender_id, message.client_msg_id,
        )
        if existing is not None:
            return existing, False
        self._reader._messages.append(message)
        return message, True

    async def get_by_client_msg_id(
        self, conversation_id: UUID, sender_id: int, client_msg_id: UUID,
    ) -> Message | None:
        for m in self._reader._messages:
            if (
                m.conversation_id == conversation_id
                and m.sender_id == sender_id
                and m.client_msg_id == client_msg_id
            ):
                return m
        return None


def _is_unread(message: Message, state: ReadState | None) -> bool:
    if state is None:
        return True
    if message.created_at != state.last_read_at:
        return message.created_at > state.last_read_at
    return state.last_read_message_id is not None and message.id > state.last_read_message_id


@dataclass
class FakeReadStateReader:
    _messages: FakeMessageReader
    _store: dict[tuple[UUID, int], ReadState] = field(default_factory=dict)

    async def get(self, conversation_id: UUID, user_id: int) -> ReadState | None:
        return self._store.get((conversation_id, user_id))

    async def unread_counts(
        self, user_id: int, conversation_ids: Sequence[UUID],
    ) -> dict[UUID, int]:
        counts: dict[UUID, int] = {}
        for m in self._messages._messages:
            if m.conversation_id not in conversation_ids or m.sender_id == user_id:
                continue
            if _is_unread(m, self._store.get((m.conversation_id, user_id))):
                counts[m.conversation_id] = counts.get(m.conversation_id, 0) + 1
        return counts


@dataclass
class FakeReadStateWriter:
    _reader: FakeReadStateReader

    async def upsert_last_read(
        self,
        conversation_id: UUID,
        user_id: int,
        last_message: Message,
        read_at: datetime,
    ) -> None:
        current = self._reader._store.get((conversation_id, user_id))
        if current is not None and not _is_unread(last_message, current):
            return
        self._reader._store[(conversation_id, user_id)] = ReadState(
            conversation_id=conversation_id,
            user_id=user_id,
            last_read_message_id=last_message.id,
            last_read_at=last_message.created_at,
            updated_at=read_at,
        )


@dataclass
class FakeOutboxWriter:
    _records: list[dict[str, Any]] = field(default_factory=list)
    pending: list[OutboxRecord] = field(default_factory=list)
    sent: list[int] = field(default_factory=list)
    failed: dict[int, datetime] = field(default_factory=dict)
    dead: list[int] = field(default_factory=list)
    errors: dict[int, str] = field(default_factory=dict)

    @property
    def event_types(self) -> list[str]:
        return [r["event_type"] for r in self._records]

    async def add(self, event_type: str, payload: dict[str, Any]) -> None:
        self._records.append({"event_type": event_type, "payload": payload})

    async def fetch_pending(self, batch_size: int) -> list[OutboxRecord]:
        return self.pending[:batch_size]

    async def mark_sent(self, ids: list[int]) -> None:
        self.sent.extend(ids)

    async def mark_failed(self, record_id: int, next_retry_at: datetime, error: str) -> None:
        self.failed[record_id] = next_retry_at
        self.errors[record_id] = error

    async def mark_dead(self, record_id: int, error: str) -> None:
        self.dead.append(record_id)
        self.errors[record_id] = error


@dataclass
class FakeUoW:
    """In-memory UoW for unit tests."""
    requests: FakeRequestReader = field(default_factory=FakeRequestReader)
    requests_w: FakeRequestWriter | None = None
    conversations: FakeConversationReader = field(default_factory=FakeConversationReader)
    conversations_w: FakeConversationWriter | None = None
    messages: FakeMessageReader = field(default_factory=FakeMessageReader)
    messages_w: FakeMessageWriter | None = None
    read_state: FakeReadStateReader | None = None
    read_state_w: FakeReadStateWriter | None = None
    outbox: FakeOutboxWriter = field(default_factory=FakeOutboxWriter)
    _committed: bool = False
    commits: int = 0

    def __post_init__(self) -> None:
        if self.requests_w is None:
            self.requests_w = FakeRequestWriter(self.requests)
        if self.conversations_w is None:
            self.conversations_w = FakeConversationWriter(self.conversations)
        if self.messages_w is None:
            self.messages_w = FakeMessageWriter(self.messages)
        if self.read_state is None:
            self.read_state = FakeReadStateReader(self.messages)
        if self.read_state_w is None:
            self.read_state_w = FakeReadStateWriter(self.read_state)

    async def flush(self) -> None:
        pass

    async def commit(self) -> None:
        self._committed = True
        self.commits += 1

    async def rollback(self) -> None:
        pass
