"""Pure mapping from stored timers to the views pushed to browsers.

Nothing in here reads the clock or touches the database: the caller passes
``now`` in, which keeps the derived ``progress``/``duration`` fields
reproducible in tests.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable

from ..schemas.timer import TimerView
from .timecalc import elapsed_ms, parse_iso


def project(timer, now: datetime) -> TimerView:
    """Build a ``TimerView`` from a ``Timer`` row (or anything shaped like one)."""

    start = parse_iso(timer.start_iso)
    end = parse_iso(timer.end_iso)
    if end is None:
        return TimerView(
            id=timer.id,
            user_id=timer.user_id,
            description=timer.description or "",
            start=start,
            is_active=True,
            progress=elapsed_ms(start, now),
        )
    return TimerView(
        id=timer.id,
        user_id=timer.user_id,
        description=timer.description or "",
        start=start,
        end=end,
        is_active=False,
        duration=elapsed_ms(start, end),
    )


def project_all(timers: Iterable, now: datetime) -> list[TimerView]:
    return [project(timer, now) for timer in timers]


def stop_view(view: TimerView, at: datetime) -> TimerView:
    """Turn an active view into a finished one without a round-trip read.

    Finished views come back unchanged; a timer only ever stops once.
    """

    if not view.is_active:
        return view
    end = max(at, view.start)
    return view.model_copy(
        update={
            "end": end,
            "is_active": False,
            "progress": None,
            "duration": elapsed_ms(view.start, end),
        }
    )
