from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import redis.asyncio as aioredis
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from chat_hub.api.deps import get_verifier
from chat_hub.api.middleware.correlation_id import CorrelationIdMiddleware
from chat_hub.api.middleware.metrics import RequestTimingMiddleware
from chat_hub.api.v1.routers import (
    chat_requests,
    conversations,
    health,
    invitations,
    messages,
    users,
    ws,
)
from chat_hub.application.exceptions import (
    AuthenticationError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from chat_hub.application.uow import UnitOfWorkFactory
from chat_hub.config import settings
from chat_hub.realtime.gateway import build_gateway

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup / shutdown lifecycle."""
    await app.state.realtime.start()
    logger.info("Realtime gateway started (fanout=%s)", settings.FANOUT_BACKEND)

    yield

    await app.state.realtime.close()
    if app.state.dispose_db is not None:
        await app.state.dispose_db()
    if app.state.redis is not None:
        await app.state.redis.aclose()
        logger.info("Redis connection pool closed")


def create_app(*, uow_factory: UnitOfWorkFactory | None = None) -> FastAPI:
    app = FastAPI(
        title="Chat Hub",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state.dispose_db = None
    if uow_factory is None:
        from chat_hub.infrastructure.db.session import dispose_engine
        from chat_hub.infrastructure.db.uow import sqlalchemy_uow

        uow_factory = sqlalchemy_uow
        app.state.dispose_db = dispose_engine
    app.state.uow_factory = uow_factory

    app.state.redis = None
    if settings.FANOUT_BACKEND == "redis":
        app.state.redis = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
        logger.info("Redis connection pool created")

    app.state.realtime = build_gateway(
        verifier=get_verifier(),
        uow_factory=uow_factory,
        typing_timeout=settings.TYPING_TIMEOUT_SECONDS,
        redis=app.state.redis,
        channel=settings.REDIS_PUBSUB_CHANNEL,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestTimingMiddleware, slow_ms=settings.SLOW_REQUEST_MS)
    app.add_middleware(CorrelationIdMiddleware)

    _register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(users.router)
    app.include_router(conversations.router)
    app.include_router(invitations.router)
    app.include_router(messages.router)
    app.include_router(chat_requests.router)
    app.include_router(ws.router)

    return app


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(NotFoundError)
    async def _not_found(_req: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": exc.detail})

    @app.exception_handler(ForbiddenError)
    async def _forbidden(_req: Request, exc: ForbiddenError) -> JSONResponse:
        return JSONResponse(status_code=403, content={"detail": exc.detail})

    @app.exception_handler(ConflictError)
    async def _conflict(_req: Request, exc: ConflictError) -> JSONResponse:
        return JSONResponse(status_code=409, content={"detail": exc.detail})

    @app.exception_handler(ValidationError)
    async def _validation(_req: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": exc.detail})

    @app.exception_handler(AuthenticationError)
    async def _unauthenticated(_req: Request, exc: AuthenticationError) -> JSONResponse:
        return JSONResponse(status_code=401, content={"detail": exc.detail})
