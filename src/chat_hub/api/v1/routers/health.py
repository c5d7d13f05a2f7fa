from __future__ import annotations

from typing import Any

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text

from chat_hub.api.deps import RealtimeDep
from chat_hub.infrastructure.db.session import AsyncSessionLocal

router = APIRouter(tags=["health"])


@router.get("/healthz")
async def healthz(realtime: RealtimeDep) -> dict[str, Any]:
    """Liveness plus a snapshot of this process's realtime state."""
    return {
        "status": "ok",
        "connections": realtime.hub.connection_count,
        "onlineUsers": len(realtime.presence.list_online()),
    }


@router.get("/readyz")
async def readyz(realtime: RealtimeDep) -> JSONResponse:
    errors: list[str] = []

    try:
        async with AsyncSessionLocal() as session:
            await session.execute(text("SELECT 1"))
    except Exception as exc:  # noqa: BLE001
        errors.append(f"postgres: {exc}")

    # the relay is only in play with the redis fan-out backend
    if realtime.redis is not None:
        try:
            await realtime.redis.ping()
        except Exception as exc:  # noqa: BLE001
            errors.append(f"redis: {exc}")

    if errors:
        return JSONResponse(
            status_code=503,
            content={"status": "unavailable", "errors": errors},
        )
    return JSONResponse(content={"status": "ready"})
