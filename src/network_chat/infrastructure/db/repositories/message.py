from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert

from network_chat.application.cursor import decode_cursor
from network_chat.domain.entities.message import Message
from network_chat.infrastructure.db.mappers import message as mapper
from network_chat.infrastructure.db.models.message import MessageModel
from network_chat.infrastructure.db.repositories._base import SessionRepo


class MessageReaderRepo(SessionRepo):
    async def list_messages(
        self,
        conversation_id: UUID,
        *,
        cursor: str | None = None,
        limit: int = 50,
    ) -> list[Message]:
        stmt = (
            select(MessageModel)
            .where(MessageModel.conversation_id == conversation_id)
            .order_by(MessageModel.created_at.asc(), MessageModel.id.asc())
            .limit(limit)
        )
        if cursor:
            ts, mid = decode_cursor(cursor)
            stmt = stmt.where(
                (MessageModel.created_at > ts)
                | ((MessageModel.created_at == ts) & (MessageModel.id > mid))
            )
        result = await self._execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]

    async def get_latest(self, conversation_id: UUID) -> Message | None:
        stmt = (
            select(MessageModel)
            .where(MessageModel.conversation_id == conversation_id)
            .order_by(MessageModel.created_at.desc(), MessageModel.id.desc())
            .limit(1)
        )
        result = await self._execute(stmt)
        model = result.scalar_one_or_none()
        return mapper.model_to_entity(model) if model else None


class MessageWriterRepo(SessionRepo):
    async def create_if_not_exists(self, message: Message) -> tuple[Message, bool]:
        """Insert message idempotently. Returns (message, created_flag)."""
        values = {
            "id": message.id,
            "conversation_id": message.conversation_id,
            "sender_id": message.sender_id,
            "text": message.text,
            "client_msg_id": message.client_msg_id,
            "created_at": message.created_at,
        }
        stmt = (
            pg_insert(MessageModel)
            .values(**values)
            .on_conflict_do_nothing(constraint="uq_message_idempotency")
            .returning(MessageModel)
        )
        result = await self._execute(stmt)
        row = result.scalar_one_or_none()

        if row is not None:
            # Inserted successfully
            return mapper.model_to_entity(row), True

        # Conflict: fetch existing
        existing = await self.get_by_client_msg_id(
            message.conversation_id,
            message.sender_id,
            message.client_msg_id,
        )
        assert existing is not None
        return existing, False

    async def get_by_client_msg_id(
        self,
        conversation_id: UUID,
        sender_id: int,
        client_msg_id: UUID,
    ) -> Message | None:
        stmt = select(MessageModel).where(
            MessageModel.conversation_id == conversation_id,
            MessageModel.sender_id == sender_id,
            MessageModel.client_msg_id == client_msg_id,
        )
        result = await self._execute(stmt)
        model = result.scalar_one_or_none()
        return mapper.model_to_entity(model) if model else None
