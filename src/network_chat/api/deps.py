"""FastAPI dependency injection helpers."""
from __future__ import annotations

import logging
from typing import Annotated, AsyncIterator

import jwt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from network_chat.application.dto.principal import Principal
from network_chat.application.ports.auth import TokenVerifier
from network_chat.config import settings
from network_chat.infrastructure.auth.hs256_verifier import HS256Verifier
from network_chat.infrastructure.db.session import AsyncSessionLocal
from network_chat.infrastructure.db.uow import SqlAlchemyUoW

logger = logging.getLogger(__name__)

_bearer_scheme = HTTPBearer(auto_error=False)


async def get_uow() -> AsyncIterator[SqlAlchemyUoW]:
    async with AsyncSessionLocal() as session:
        uow = SqlAlchemyUoW(session)
        try:
            yield uow
        finally:
            await session.close()


UoWDep = Annotated[SqlAlchemyUoW, Depends(get_uow)]

_verifier: TokenVerifier | None = None


def get_verifier() -> TokenVerifier:
    global _verifier  # noqa: PLW0603
    if _verifier is None:
        _verifier = HS256Verifier(settings.JWT_SECRET, settings.JWT_ALGORITHM)
    return _verifier


def _extract_token(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None,
) -> str | None:
    # Session cookie first, then Authorization: Bearer
    cookie = request.cookies.get(settings.AUTH_COOKIE_NAME)
    if cookie:
        return cookie
    if credentials is not None:
        return credentials.credentials
    return None


async def get_current_principal(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer_scheme)],
) -> Principal:
    token = _extract_token(request, credentials)
    if token is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )

    verifier = get_verifier()
    try:
        return await verifier.verify(token)
    except (jwt.InvalidTokenError, ValueError) as exc:
        logger.info("Rejected session token: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc


CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]
