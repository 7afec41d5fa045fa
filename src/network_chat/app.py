from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from network_chat.api.middleware.correlation_id import CorrelationIdMiddleware
from network_chat.api.middleware.timing import RequestTimingMiddleware
from network_chat.api.v1.routers import (
    connection_requests,
    conversations,
    health,
    messages,
)
from network_chat.application.exceptions import (
    AppError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    StoreUnavailableError,
    ValidationError,
)
from network_chat.config import settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup / shutdown lifecycle."""
    logger.info(
        "Network chat API starting (direct chats require connection: %s)",
        settings.DIRECT_CHAT_REQUIRES_CONNECTION,
    )
    yield
    logger.info("Network chat API stopped")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Network Chat Service",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(RequestTimingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    # Added last so it runs outermost and the id is set for timing logs.
    app.add_middleware(CorrelationIdMiddleware)

    _register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(connection_requests.router)
    app.include_router(conversations.router)
    app.include_router(messages.router)

    return app


def _error(status_code: int, exc: AppError) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.detail, "code": exc.code},
    )


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(NotFoundError)
    async def _not_found(_req: Request, exc: NotFoundError) -> JSONResponse:
        return _error(404, exc)

    @app.exception_handler(ForbiddenError)
    async def _forbidden(_req: Request, exc: ForbiddenError) -> JSONResponse:
        return _error(403, exc)

    @app.exception_handler(ConflictError)
    async def _conflict(_req: Request, exc: ConflictError) -> JSONResponse:
        return _error(409, exc)

    @app.exception_handler(ValidationError)
    async def _validation(_req: Request, exc: ValidationError) -> JSONResponse:
        return _error(422, exc)

    @app.exception_handler(StoreUnavailableError)
    async def _store_unavailable(
        _req: Request, exc: StoreUnavailableError,
    ) -> JSONResponse:
        logger.error("Store unavailable: %s", exc.detail)
        return _error(503, exc)
