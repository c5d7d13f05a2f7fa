from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect
from pydantic import ValidationError as PayloadError

from chat_hub.api.middleware.correlation_id import bind_correlation_id, reset_correlation_id
from chat_hub.api.v1.schemas.events import ServerEvent
from chat_hub.application.exceptions import AuthenticationError
from chat_hub.config import settings
from chat_hub.infrastructure.ws.protocol import WsInbound, WsOutbound
from chat_hub.realtime.context import ConnectionContext
from chat_hub.realtime.gateway import RealtimeGateway

logger = logging.getLogger(__name__)
router = APIRouter(tags=["websocket"])


@router.websocket("/ws/chat")
async def ws_chat(
    websocket: WebSocket,
    token: str | None = Query(None),
) -> None:
    realtime: RealtimeGateway = websocket.app.state.realtime

    try:
        principal = await realtime.lifecycle.authenticate(token)
    except AuthenticationError as exc:
        logger.info("WS handshake rejected: %s", exc.detail)
        await websocket.close(code=exc.code, reason=exc.detail)
        return

    handle = await realtime.hub.accept(websocket)
    cid_token = bind_correlation_id(handle)
    try:
        ctx = await realtime.lifecycle.connect(handle, principal)
    except Exception:
        logger.exception("WS connect failed for user %s", principal.user_id)
        realtime.hub.release(handle)
        reset_correlation_id(cid_token)
        await websocket.close(code=1011)
        return

    heartbeat_task = asyncio.create_task(
        _heartbeat(websocket), name=f"ws-heartbeat-{handle}",
    )
    reason = "client disconnect"
    try:
        await _read_loop(websocket, realtime, ctx)
    except WebSocketDisconnect as exc:
        reason = f"close code {exc.code}"
    except Exception:
        reason = "server error"
        logger.exception("WS error for user %s", ctx.user_id)
    finally:
        heartbeat_task.cancel()
        realtime.hub.release(handle)
        await realtime.lifecycle.disconnect(ctx, reason)
        reset_correlation_id(cid_token)


async def _heartbeat(ws: WebSocket) -> None:
    interval = settings.WS_HEARTBEAT_SECONDS
    try:
        while True:
            await asyncio.sleep(interval)
            await ws.send_text(WsOutbound(type=ServerEvent.PONG.value).encode())
    except asyncio.CancelledError:
        pass
    except Exception:
        logger.debug("Heartbeat stopped", exc_info=True)


async def _read_loop(ws: WebSocket, realtime: RealtimeGateway, ctx: ConnectionContext) -> None:
    # one event at a time: per-connection ordering is arrival order
    while True:
        raw = await ws.receive_text()
        try:
            msg = WsInbound.model_validate_json(raw)
        except PayloadError:
            await ws.send_text(WsOutbound.error(None, "Invalid payload").encode())
            continue
        await realtime.router.dispatch(ctx, msg.type, msg.data)
