from __future__ import annotations

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

correlation_id_ctx: ContextVar[str] = ContextVar("correlation_id", default="")

HEADER = "X-Request-ID"
# Accepted from upstream proxies, echoed back as HEADER
ALT_HEADERS = ("X-Correlation-ID",)


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        cid = request.headers.get(HEADER)
        for name in ALT_HEADERS:
            cid = cid or request.headers.get(name)
        cid = cid or uuid.uuid4().hex

        token = correlation_id_ctx.set(cid)
        try:
            response = await call_next(request)
            response.headers[HEADER] = cid
            return response
        finally:
            correlation_id_ctx.reset(token)
