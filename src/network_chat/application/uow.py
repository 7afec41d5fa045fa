from __future__ import annotations

from typing import Protocol

from network_chat.application.repositories.connection_request import (
    ConnectionRequestReader,
    ConnectionRequestWriter,
)
from network_chat.application.repositories.conversation import (
    ConversationReader,
    ConversationWriter,
)
from network_chat.application.repositories.message import MessageReader, MessageWriter
from network_chat.application.repositories.outbox import OutboxWriter
from network_chat.application.repositories.read_state import ReadStateReader, ReadStateWriter


class UnitOfWork(Protocol):
    requests: ConnectionRequestReader
    requests_w: ConnectionRequestWriter
    conversations: ConversationReader
    conversations_w: ConversationWriter
    messages: MessageReader
    messages_w: MessageWriter
    read_state: ReadStateReader
    read_state_w: ReadStateWriter
    outbox: OutboxWriter

    async def commit(self) -> None: ...
    async def rollback(self) -> None: ...
    async def flush(self) -> None: ...
