from __future__ import annotations

from uuid import UUID

from sqlalchemy import or_, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert

from network_chat.application.cursor import decode_cursor
from network_chat.application.dto.connection_request import RequestFilterDTO
from network_chat.application.exceptions import StaleWriteError
from network_chat.domain.entities.connection_request import ConnectionRequest
from network_chat.domain.value_objects.enums import RequestBox, RequestStatus
from network_chat.domain.value_objects.pair import pair_key
from network_chat.infrastructure.db.mappers import connection_request as mapper
from network_chat.infrastructure.db.models.connection_request import ConnectionRequestModel
from network_chat.infrastructure.db.repositories._base import SessionRepo


class ConnectionRequestReaderRepo(SessionRepo):
    async def get_by_id(self, request_id: UUID) -> ConnectionRequest | None:
        model = await self._get(ConnectionRequestModel, request_id)
        return mapper.model_to_entity(model) if model else None

    async def get_pending_between(
        self,
        user_a: int,
        user_b: int,
    ) -> ConnectionRequest | None:
        stmt = select(ConnectionRequestModel).where(
            ConnectionRequestModel.pending_key == pair_key(user_a, user_b),
        )
        result = await self._execute(stmt)
        model = result.scalar_one_or_none()
        return mapper.model_to_entity(model) if model else None

    async def has_accepted_between(self, user_a: int, user_b: int) -> bool:
        stmt = (
            select(ConnectionRequestModel.id)
            .where(
                ConnectionRequestModel.status == RequestStatus.ACCEPTED,
                or_(
                    (ConnectionRequestModel.from_user_id == user_a)
                    & (ConnectionRequestModel.to_user_id == user_b),
                    (ConnectionRequestModel.from_user_id == user_b)
                    & (ConnectionRequestModel.to_user_id == user_a),
                ),
            )
            .limit(1)
        )
        result = await self._execute(stmt)
        return result.scalar_one_or_none() is not None

    async def list_pending_for(
        self,
        user_id: int,
        *,
        cursor: str | None = None,
        limit: int = 50,
    ) -> list[ConnectionRequest]:
        stmt = (
            select(ConnectionRequestModel)
            .where(
                ConnectionRequestModel.to_user_id == user_id,
                ConnectionRequestModel.status == RequestStatus.PENDING,
            )
            .order_by(ConnectionRequestModel.created_at.asc(), ConnectionRequestModel.id.asc())
            .limit(limit)
        )
        if cursor:
            ts, rid = decode_cursor(cursor)
            stmt = stmt.where(
                (ConnectionRequestModel.created_at > ts)
                | (
                    (ConnectionRequestModel.created_at == ts)
                    & (ConnectionRequestModel.id > rid)
                )
            )
        result = await self._execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]

    async def list_for_user(
        self,
        user_id: int,
        filters: RequestFilterDTO,
    ) -> list[ConnectionRequest]:
        if filters.box == RequestBox.OUTGOING:
            stmt = select(ConnectionRequestModel).where(ConnectionRequestModel.from_user_id == user_id)
        else:
            stmt = select(ConnectionRequestModel).where(ConnectionRequestModel.to_user_id == user_id)
        if not filters.include_resolved:
            stmt = stmt.where(ConnectionRequestModel.status == RequestStatus.PENDING)
        stmt = stmt.order_by(
            ConnectionRequestModel.created_at.desc(),
            ConnectionRequestModel.id,
        ).limit(filters.limit)
        result = await self._execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]


class ConnectionRequestWriterRepo(SessionRepo):
    async def create_if_no_pending(
        self,
        request: ConnectionRequest,
    ) -> tuple[ConnectionRequest | None, bool]:
        """Insert a pending request. Returns (request, created_flag)."""
        values = {
            "id": request.id,
            "from_user_id": request.from_user_id,
            "to_user_id": request.to_user_id,
            "message": request.message,
            "status": request.status.value,
            "meta": dict(request.meta),
            "pending_key": mapper.pending_key_for(request),
            "version": request.version,
            "created_at": request.created_at,
            "updated_at": request.updated_at,
        }
        stmt = (
            pg_insert(ConnectionRequestModel)
            .values(**values)
            .on_conflict_do_nothing(constraint="uq_connection_requests_pending_pair")
            .returning(ConnectionRequestModel)
        )
        result = await self._execute(stmt)
        row = result.scalar_one_or_none()

        if row is not None:
            return mapper.model_to_entity(row), True

        # Conflict: another pending request holds the pair. It may have been
        # answered since, in which case there is nothing left to return.
        existing = await ConnectionRequestReaderRepo(self._session).get_pending_between(
            request.from_user_id, request.to_user_id,
        )
        return existing, False

    async def update(
        self,
        request: ConnectionRequest,
        *,
        expected_version: int,
    ) -> ConnectionRequest | None:
        stmt = (
            update(ConnectionRequestModel)
            .where(
                ConnectionRequestModel.id == request.id,
                ConnectionRequestModel.version == expected_version,
            )
            .values(
                status=request.status.value,
                meta=dict(request.meta),
                pending_key=mapper.pending_key_for(request),
                updated_at=request.updated_at,
                version=expected_version + 1,
            )
            .returning(ConnectionRequestModel)
        )
        result = await self._execute(stmt)
        model = result.scalar_one_or_none()
        if model is not None:
            return mapper.model_to_entity(model)

        found = await self._execute(
            select(ConnectionRequestModel.id).where(ConnectionRequestModel.id == request.id)
        )
        if found.scalar_one_or_none() is None:
            return None
        raise StaleWriteError("Connection request was modified concurrently")
