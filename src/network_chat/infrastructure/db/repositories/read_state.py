from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from uuid import UUID

from sqlalchemy import and_, func, or_, select
from sqlalchemy.dialects.postgresql import insert as pg_insert

from network_chat.domain.entities.message import Message
from network_chat.domain.entities.read_state import ReadState
from network_chat.infrastructure.db.mappers import read_state as mapper
from network_chat.infrastructure.db.models.message import MessageModel
from network_chat.infrastructure.db.models.read_state import ReadStateModel
from network_chat.infrastructure.db.repositories._base import SessionRepo


class ReadStateReaderRepo(SessionRepo):
    async def get(self, conversation_id: UUID, user_id: int) -> ReadState | None:
        stmt = select(ReadStateModel).where(
            ReadStateModel.conversation_id == conversation_id,
            ReadStateModel.user_id == user_id,
        )
        result = await self._execute(stmt)
        model = result.scalar_one_or_none()
        return mapper.model_to_entity(model) if model else None

    async def unread_counts(
        self,
        user_id: int,
        conversation_ids: Sequence[UUID],
    ) -> dict[UUID, int]:
        if not conversation_ids:
            return {}
        rs = ReadStateModel
        stmt = (
            select(MessageModel.conversation_id, func.count())
            .select_from(MessageModel)
            .outerjoin(
                rs,
                and_(
                    rs.conversation_id == MessageModel.conversation_id,
                    rs.user_id == user_id,
                ),
            )
            .where(
                MessageModel.conversation_id.in_(list(conversation_ids)),
                MessageModel.sender_id != user_id,
                or_(
                    rs.id.is_(None),
                    MessageModel.created_at > rs.last_read_at,
                    and_(
                        MessageModel.created_at == rs.last_read_at,
                        MessageModel.id > rs.last_read_message_id,
                    ),
                ),
            )
            .group_by(MessageModel.conversation_id)
        )
        result = await self._execute(stmt)
        return {conversation_id: count for conversation_id, count in result.all()}


class ReadStateWriterRepo(SessionRepo):
    async def upsert_last_read(
        self,
        conversation_id: UUID,
        user_id: int,
        last_message: Message,
        read_at: datetime,
    ) -> None:
        stmt = pg_insert(ReadStateModel).values(
            conversation_id=conversation_id,
            user_id=user_id,
            last_read_message_id=last_message.id,
            last_read_at=last_message.created_at,
            updated_at=read_at,
        )
        excluded = stmt.excluded
        stmt = stmt.on_conflict_do_update(
            constraint="uq_read_state_member",
            set_={
                "last_read_message_id": excluded.last_read_message_id,
                "last_read_at": excluded.last_read_at,
                "updated_at": excluded.updated_at,
            },
            # Only move forward
            where=or_(
                ReadStateModel.last_read_at < excluded.last_read_at,
                and_(
                    ReadStateModel.last_read_at == excluded.last_read_at,
                    ReadStateModel.last_read_message_id < excluded.last_read_message_id,
                ),
            ),
        )
        await self._execute(stmt)
