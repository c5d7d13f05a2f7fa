"""Correlation ids for log records.

HTTP requests take the id from ``X-Request-ID`` (or get a fresh one). A
WebSocket connection binds its connection handle for the lifetime of the
socket, so every log line of one connection carries the same id.
"""
from __future__ import annotations

import logging
import uuid
from contextvars import ContextVar, Token

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

correlation_id_ctx: ContextVar[str] = ContextVar("correlation_id", default="-")

HEADER = "X-Request-ID"


def bind_correlation_id(value: str) -> Token[str]:
    return correlation_id_ctx.set(value)


def reset_correlation_id(token: Token[str]) -> None:
    correlation_id_ctx.reset(token)


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        cid = request.headers.get(HEADER) or uuid.uuid4().hex
        token = bind_correlation_id(cid)
        try:
            response = await call_next(request)
            response.headers[HEADER] = cid
            return response
        finally:
            reset_correlation_id(token)


class CorrelationIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = correlation_id_ctx.get()
        return True
