"""Fixed-period driver for the active-timer broadcast."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from starlette.concurrency import run_in_threadpool

logger = logging.getLogger(__name__)


class Ticker:
    """Call ``tick`` on a worker thread every ``interval`` seconds.

    Each tick runs as its own task, so a slow tick neither delays nor skips
    the next one. Overlapping ticks are fine: every broadcast is a full
    snapshot.
    """

    def __init__(self, tick: Callable[[], object], interval: float) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.tick = tick
        self.interval = interval
        self._task: asyncio.Task | None = None
        self._inflight: set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="timer-ticker")

    async def stop(self) -> None:
        task, self._task = self._task, None
        pending = [t for t in (task, *self._inflight) if t is not None]
        for t in pending:
            t.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._inflight.clear()

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time()
        while True:
            deadline += self.interval
            await asyncio.sleep(max(deadline - loop.time(), 0))
            task = asyncio.create_task(self._tick_once())
            self._inflight.add(task)
            task.add_done_callback(self._inflight.discard)

    async def _tick_once(self) -> None:
        try:
            await run_in_threadpool(self.tick)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("ticker.tick_failed")
