"""Process-wide map from user id to that user's live push channel.

Command handlers run on the thread pool while channel close callbacks and the
ticker run on the event loop, so every operation takes the same lock. Each
user has at most one registered channel; registering again replaces it.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Protocol

logger = logging.getLogger(__name__)


class Channel(Protocol):
    def send(self, message: dict[str, Any]) -> bool:
        """Queue ``message`` for delivery. Returns False if the channel is closed."""


class ConnectionRegistry:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._channels: dict[int, Channel] = {}

    def register(self, user_id: int, channel: Channel) -> Channel | None:
        """Store ``channel`` for ``user_id`` and return the one it replaced, if any.

        The replaced channel is not closed; it simply stops receiving pushes.
        """

        with self._lock:
            previous = self._channels.get(user_id)
            self._channels[user_id] = channel
        if previous is not None and previous is not channel:
            logger.info("channel.replaced", extra={"extra_data": {"user_id": user_id}})
            return previous
        return None

    def unregister(self, user_id: int, channel: Channel | None = None) -> bool:
        """Drop the entry for ``user_id``.

        With ``channel`` given, the entry is only dropped while it still points
        at that channel, so a superseded connection closing late cannot evict
        its replacement. Unknown users are ignored.
        """

        with self._lock:
            current = self._channels.get(user_id)
            if current is None:
                return False
            if channel is not None and current is not channel:
                return False
            del self._channels[user_id]
        return True

    def get(self, user_id: int) -> Channel | None:
        with self._lock:
            return self._channels.get(user_id)

    def user_ids(self) -> list[int]:
        with self._lock:
            return list(self._channels)

    def for_each_user_id(self, fn: Callable[[int], Any]) -> None:
        # Walk a snapshot; fn may register or unregister without deadlocking.
        for user_id in self.user_ids():
            fn(user_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._channels)

    def __contains__(self, user_id: object) -> bool:
        with self._lock:
            return user_id in self._channels
