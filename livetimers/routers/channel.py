"""Push channel endpoint.

The gate runs before ``accept``: an unidentified upgrade is refused with 401
and never becomes a WebSocket. Accepted sockets are registered for their user,
sent the full timer list once, and then only written to. Anything the browser
sends is read and dropped.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging

from fastapi import APIRouter, WebSocket, status
from fastapi.responses import PlainTextResponse
from starlette.concurrency import run_in_threadpool

from ..deps.auth import channel_user_id
from ..services.channels import WebSocketChannel

logger = logging.getLogger(__name__)

router = APIRouter()

DENIAL_EXTENSION = "websocket.http.response"


def _identify(websocket: WebSocket) -> int | None:
    state = websocket.app.state
    with state.session_factory() as db:
        return channel_user_id(websocket, db, state.settings)


async def _reject(websocket: WebSocket) -> None:
    if DENIAL_EXTENSION in websocket.scope.get("extensions", {}):
        await websocket.send_denial_response(PlainTextResponse("Unauthorized", status_code=401))
    else:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)


@router.websocket("/ws")
async def timers_channel(websocket: WebSocket) -> None:
    state = websocket.app.state
    user_id = await run_in_threadpool(_identify, websocket)
    if user_id is None:
        logger.info("channel.rejected", extra={"extra_data": {"client": str(websocket.client)}})
        await _reject(websocket)
        return

    await websocket.accept()
    channel = WebSocketChannel(websocket, user_id)
    state.registry.register(user_id, channel)
    writer = asyncio.create_task(channel.pump())
    logger.info("channel.opened", extra={"extra_data": {"user_id": user_id}})
    try:
        await run_in_threadpool(state.sync.push_all_now, user_id)
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
    finally:
        state.registry.unregister(user_id, channel)
        channel.close()
        writer.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await writer
        logger.info("channel.closed", extra={"extra_data": {"user_id": user_id}})
