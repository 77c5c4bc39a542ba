"""WebSocket-backed push channel.

``send`` may be called from any thread. Messages go onto an asyncio queue
owned by the event loop and a single writer task drains it, so a channel
delivers in the order messages were handed to it and the caller never waits
on the network.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any

from fastapi import WebSocket

logger = logging.getLogger(__name__)

_CLOSE = object()


class WebSocketChannel:
    def __init__(self, websocket: WebSocket, user_id: int, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self.websocket = websocket
        self.user_id = user_id
        self._loop = loop or asyncio.get_running_loop()
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = threading.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def send(self, message: dict[str, Any]) -> bool:
        if self._closed.is_set():
            return False
        try:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, message)
        except RuntimeError:
            # Event loop already shut down.
            self._closed.set()
            return False
        return True

    def close(self) -> None:
        if self._closed.is_set():
            return
        self._closed.set()
        try:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, _CLOSE)
        except RuntimeError:
            pass

    async def pump(self) -> None:
        """Write queued messages to the socket until closed or a send fails."""

        while True:
            message = await self._queue.get()
            if message is _CLOSE:
                return
            try:
                await self.websocket.send_json(message)
            except Exception as exc:  # noqa: BLE001
                logger.info(
                    "channel.send_failed",
                    extra={"extra_data": {"user_id": self.user_id, "error": repr(exc)}},
                )
                self._closed.set()
                return
