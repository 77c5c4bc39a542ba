from __future__ import annotations

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from ..core.errors import TimerNotFound
from ..crud.timers import list_active_timers, list_timers
from ..db.session import get_db, parse_row_id
from ..deps.auth import AuthContext, get_sync_engine, require_user
from ..schemas.timer import TimerCreate, TimerCreated, TimerView
from ..services.projection import project_all
from ..services.sync import SyncEngine
from ..services.timers import start_timer, stop_timer

router = APIRouter(prefix="/api/timers", tags=["timers"])


@router.get("", response_model=list[TimerView], response_model_exclude_none=True)
def api_list_timers(
    active: bool = False,
    auth: AuthContext = Depends(require_user),
    db: Session = Depends(get_db),
    sync: SyncEngine = Depends(get_sync_engine),
):
    rows = list_active_timers(db, auth.user_id) if active else list_timers(db, auth.user_id)
    return project_all(rows, sync.clock())


@router.post("", response_model=TimerCreated, status_code=201)
def api_start_timer(
    payload: TimerCreate,
    auth: AuthContext = Depends(require_user),
    db: Session = Depends(get_db),
    sync: SyncEngine = Depends(get_sync_engine),
):
    timer_id = start_timer(db, sync, auth.user_id, payload.description)
    return TimerCreated(id=timer_id)


@router.post("/{timer_id}/stop", status_code=204, response_class=Response)
def api_stop_timer(
    timer_id: str,
    auth: AuthContext = Depends(require_user),
    db: Session = Depends(get_db),
    sync: SyncEngine = Depends(get_sync_engine),
):
    parsed = parse_row_id(timer_id)
    if parsed is None or not stop_timer(db, sync, auth.user_id, parsed):
        raise TimerNotFound(timer_id)
    return Response(status_code=204)
