"""SQLAlchemy engine and session helpers."""

from __future__ import annotations

from typing import Iterator

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

# ``Base`` is the parent class for every SQLAlchemy model defined in livetimers/models.
Base = declarative_base()

# Integer primary keys are signed 64-bit in SQLite and Postgres.
MAX_ROW_ID = 2**63 - 1


def parse_row_id(raw: str | None) -> int | None:
    """Turn a path or cookie value into a row id, or ``None`` if no row could have it."""

    if not raw or not (raw.isascii() and raw.isdigit()):
        return None
    value = int(raw)
    return value if value <= MAX_ROW_ID else None


def make_engine(url: str) -> Engine:
    # SQLite connections are shared between the request thread pool and the
    # ticker thread, so the same-thread check has to go.
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, connect_args=connect_args)


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


def get_db(request: Request) -> Iterator[Session]:
    """FastAPI dependency that yields a session and guarantees cleanup."""

    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
