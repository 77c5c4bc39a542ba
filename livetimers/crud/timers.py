"""CRUD helpers for timers."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from ..models.timer import Timer
from ..services.timecalc import to_iso, utcnow


def get_timer(db: Session, timer_id: int) -> Timer | None:
    return db.get(Timer, timer_id)


def create_timer(db: Session, user_id: int, description: str, *, at: datetime | None = None) -> Timer:
    timer = Timer(
        user_id=user_id,
        description=(description or "").strip(),
        start_iso=to_iso(at or utcnow()),
    )
    db.add(timer)
    db.commit()
    db.refresh(timer)
    return timer


def stop_timer(db: Session, timer_id: int, user_id: int, *, at: datetime | None = None) -> bool:
    """Set ``end_iso`` if the timer belongs to ``user_id`` and is still running.

    The ownership and "still running" checks are part of the UPDATE itself so
    two concurrent stops cannot both succeed.
    """

    stmt = (
        update(Timer)
        .where(Timer.id == timer_id, Timer.user_id == user_id, Timer.end_iso.is_(None))
        .values(end_iso=to_iso(at or utcnow()))
        .execution_options(synchronize_session=False)
    )
    result = db.execute(stmt)
    db.commit()
    return result.rowcount == 1


def list_timers(db: Session, user_id: int) -> list[Timer]:
    stmt = select(Timer).where(Timer.user_id == user_id).order_by(Timer.id)
    return list(db.execute(stmt).scalars().all())


def list_active_timers(db: Session, user_id: int) -> list[Timer]:
    stmt = select(Timer).where(Timer.user_id == user_id, Timer.end_iso.is_(None)).order_by(Timer.id)
    return list(db.execute(stmt).scalars().all())
