"""Start/stop commands: mutate the store, then push a fresh snapshot."""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.orm import Session

from ..crud import timers as timers_crud
from .sync import SyncEngine

logger = logging.getLogger(__name__)


def start_timer(db: Session, sync: SyncEngine, user_id: int, description: str, *, at: datetime | None = None) -> int:
    timer = timers_crud.create_timer(db, user_id, description, at=at)
    logger.info("timer.started", extra={"extra_data": {"user_id": user_id, "timer_id": timer.id}})
    sync.push_all(db, user_id)
    return timer.id


def stop_timer(db: Session, sync: SyncEngine, user_id: int, timer_id: int, *, at: datetime | None = None) -> bool:
    """Stop ``timer_id`` for its owner. False (and no push) if nothing matched."""

    if not timers_crud.stop_timer(db, timer_id, user_id, at=at):
        return False
    logger.info("timer.stopped", extra={"extra_data": {"user_id": user_id, "timer_id": timer_id}})
    sync.push_all(db, user_id)
    return True
