"""CRUD helpers for user accounts."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.security import hash_password, verify_password
from ..models.user import User
from ..services.timecalc import to_iso, utcnow


def get_user(db: Session, user_id: int) -> User | None:
    return db.get(User, user_id)


def get_user_by_username(db: Session, username: str) -> User | None:
    return db.execute(select(User).where(User.username == username)).scalars().first()


def create_user(db: Session, username: str, password: str) -> User | None:
    """Insert a new user. Returns ``None`` when the username is taken."""

    username = (username or "").strip()
    if not username:
        raise ValueError("username is required")
    if not password:
        raise ValueError("password is required")
    if get_user_by_username(db, username):
        return None
    user = User(username=username, password_hash=hash_password(password), created_at=to_iso(utcnow()))
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent signup for the same name.
        db.rollback()
        return None
    db.refresh(user)
    return user


def authenticate(db: Session, username: str, password: str) -> User | None:
    user = get_user_by_username(db, (username or "").strip())
    if not user or not verify_password(password or "", user.password_hash):
        return None
    return user
