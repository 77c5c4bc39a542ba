"""Push timer snapshots to connected browsers.

Two triggers feed the same "load, project, send" routine:

* ``push_all`` after every successful mutation and when a channel opens,
  carrying every timer the user owns;
* ``push_active`` from the ticker, carrying only running timers.

Pushing is best effort. A user without a channel is skipped, a closed channel
is skipped, and database errors are logged rather than raised, so the command
that triggered a push succeeds regardless of what happens here.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ..crud.timers import list_active_timers, list_timers
from ..schemas.timer import ACTIVE_TIMERS, ALL_TIMERS, TimerSnapshot
from .projection import project_all
from .registry import ConnectionRegistry
from .timecalc import utcnow

logger = logging.getLogger(__name__)


class SyncEngine:
    def __init__(
        self,
        registry: ConnectionRegistry,
        session_factory: sessionmaker,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.registry = registry
        self.session_factory = session_factory
        self.clock = clock

    def push_all(self, db: Session, user_id: int) -> bool:
        return self._push(db, user_id, ALL_TIMERS, list_timers)

    def push_active(self, db: Session, user_id: int) -> bool:
        return self._push(db, user_id, ACTIVE_TIMERS, list_active_timers)

    def push_all_now(self, user_id: int) -> bool:
        """``push_all`` with a session of its own, for callers outside a request."""

        with self.session_factory() as db:
            return self.push_all(db, user_id)

    def broadcast_active(self) -> int:
        """Send an active-timer snapshot to every registered user.

        Returns how many snapshots were handed to a channel. One user's failure
        never stops the walk.
        """

        sent = 0
        with self.session_factory() as db:
            for user_id in self.registry.user_ids():
                if self.push_active(db, user_id):
                    sent += 1
        return sent

    def _push(self, db: Session, user_id: int, kind: str, loader) -> bool:
        if self.registry.get(user_id) is None:
            return False
        try:
            timers = loader(db, user_id)
        except SQLAlchemyError:
            db.rollback()
            logger.exception("push.load_failed", extra={"extra_data": {"user_id": user_id, "type": kind}})
            return False
        message = TimerSnapshot(type=kind, timers=project_all(timers, self.clock())).to_json()
        # Look the channel up again: it may have closed or been replaced while loading.
        channel = self.registry.get(user_id)
        if channel is None or not channel.send(message):
            logger.debug("push.skipped", extra={"extra_data": {"user_id": user_id, "type": kind}})
            return False
        return True
