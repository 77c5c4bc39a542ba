"""Session token store: issue, resolve and revoke ``sessionId`` values."""

from __future__ import annotations

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from ..core.security import new_session_token
from ..models.session import UserSession
from ..services.timecalc import to_iso, utcnow


def issue_session(db: Session, user_id: int) -> str:
    token = new_session_token()
    db.add(UserSession(session_id=token, user_id=user_id, created_at=to_iso(utcnow())))
    db.commit()
    return token


def resolve_session(db: Session, token: str | None) -> int | None:
    if not token:
        return None
    return db.execute(select(UserSession.user_id).where(UserSession.session_id == token)).scalar_one_or_none()


def revoke_session(db: Session, token: str | None) -> None:
    if not token:
        return
    db.execute(delete(UserSession).where(UserSession.session_id == token))
    db.commit()
