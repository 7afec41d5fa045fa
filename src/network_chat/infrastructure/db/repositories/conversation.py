from __future__ import annotations

from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy import case, func, or_, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert

from network_chat.application.cursor import decode_cursor
from network_chat.application.exceptions import StaleWriteError
from network_chat.domain.entities.conversation import Conversation
from network_chat.domain.value_objects.message_preview import MessagePreview
from network_chat.domain.value_objects.pair import pair_key
from network_chat.infrastructure.db.mappers import conversation as mapper
from network_chat.infrastructure.db.models.conversation import ConversationModel
from network_chat.infrastructure.db.repositories._base import SessionRepo

_TICK = timedelta(microseconds=1)


class ConversationReaderRepo(SessionRepo):
    async def get_by_id(self, conversation_id: UUID) -> Conversation | None:
        model = await self._get(ConversationModel, conversation_id)
        return mapper.model_to_entity(model) if model else None

    async def get_direct_between(
        self,
        user_a: int,
        user_b: int,
    ) -> Conversation | None:
        stmt = select(ConversationModel).where(
            ConversationModel.direct_key == pair_key(user_a, user_b),
        )
        result = await self._execute(stmt)
        model = result.scalar_one_or_none()
        return mapper.model_to_entity(model) if model else None

    async def list_for_user(
        self,
        user_id: int,
        *,
        cursor: str | None = None,
        limit: int = 20,
    ) -> list[Conversation]:
        stmt = (
            select(ConversationModel)
            .where(ConversationModel.participants.contains([user_id]))
            .order_by(ConversationModel.updated_at.desc(), ConversationModel.id)
            .limit(limit)
        )
        if cursor:
            ts, cid = decode_cursor(cursor)
            stmt = stmt.where(
                (ConversationModel.updated_at < ts)
                | (
                    (ConversationModel.updated_at == ts)
                    & (ConversationModel.id > cid)
                )
            )
        result = await self._execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]


class ConversationWriterRepo(SessionRepo):
    async def create(self, conversation: Conversation) -> Conversation:
        model = mapper.entity_to_model(conversation)
        self._session.add(model)
        await self._flush()
        return mapper.model_to_entity(model)

    async def create_direct_if_not_exists(
        self,
        conversation: Conversation,
    ) -> tuple[Conversation, bool]:
        """Insert a 1:1 conversation idempotently. Returns (conversation, created_flag)."""
        values = {
            "id": conversation.id,
            "title": conversation.title,
            "participants": list(conversation.participants),
            "is_group": conversation.is_group,
            "direct_key": mapper.direct_key_for(conversation),
            "version": conversation.version,
            "created_at": conversation.created_at,
            "updated_at": conversation.updated_at,
        }
        stmt = (
            pg_insert(ConversationModel)
            .values(**values)
            .on_conflict_do_nothing(constraint="uq_conversations_direct_pair")
            .returning(ConversationModel)
        )
        result = await self._execute(stmt)
        row = result.scalar_one_or_none()

        if row is not None:
            return mapper.model_to_entity(row), True

        # Conflict: fetch existing. Direct conversations are never deleted, so the
        # row that won the conflict is still there.
        existing = await ConversationReaderRepo(self._session).get_direct_between(
            *conversation.participants,
        )
        assert existing is not None
        return existing, False

    async def update(
        self,
        conversation: Conversation,
        *,
        expected_version: int,
    ) -> Conversation | None:
        stmt = (
            update(ConversationModel)
            .where(
                ConversationModel.id == conversation.id,
                ConversationModel.version == expected_version,
            )
            .values(
                title=conversation.title,
                participants=list(conversation.participants),
                updated_at=conversation.updated_at,
                version=expected_version + 1,
            )
            .returning(ConversationModel)
        )
        result = await self._execute(stmt)
        model = result.scalar_one_or_none()
        if model is not None:
            return mapper.model_to_entity(model)

        found = await self._execute(
            select(ConversationModel.id).where(ConversationModel.id == conversation.id)
        )
        if found.scalar_one_or_none() is None:
            return None
        raise StaleWriteError("Conversation was modified concurrently")

    async def touch(
        self,
        conversation_id: UUID,
        ts: datetime,
        last_message: MessagePreview | None = None,
    ) -> Conversation | None:
        values = {
            "updated_at": func.greatest(ts, ConversationModel.updated_at + _TICK),
            "version": ConversationModel.version + 1,
        }
        if last_message is not None:
            # A slower sender must not replace the preview of a later message.
            newer = or_(
                ConversationModel.last_message_at.is_(None),
                ConversationModel.last_message_at <= last_message.created_at,
            )
            preview = {
                "last_message_id": last_message.message_id,
                "last_message_sender_id": last_message.sender_id,
                "last_message_text": last_message.text,
                "last_message_at": last_message.created_at,
            }
            for name, value in preview.items():
                values[name] = case((newer, value), else_=getattr(ConversationModel, name))

        stmt = (
            update(ConversationModel)
            .where(ConversationModel.id == conversation_id)
            .values(**values)
            .returning(ConversationModel)
        )
        result = await self._execute(stmt)
        model = result.scalar_one_or_none()
        return mapper.model_to_entity(model) if model else None
