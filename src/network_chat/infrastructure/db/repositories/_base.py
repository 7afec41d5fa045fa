from __future__ import annotations

from typing import Any, TypeVar

from sqlalchemy.engine import Result
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Executable

from network_chat.infrastructure.db.errors import store_errors

M = TypeVar("M")


class SessionRepo:
    """Shared session plumbing; every round-trip goes through store_errors()."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def _execute(self, stmt: Executable) -> Result[Any]:
        with store_errors():
            return await self._session.execute(stmt)

    async def _get(self, model: type[M], ident: Any) -> M | None:
        # populate_existing so a re-read after a failed compare-and-write sees fresh state
        with store_errors():
            return await self._session.get(model, ident, populate_existing=True)

    async def _flush(self) -> None:
        with store_errors():
            await self._session.flush()
