from __future__ import annotations

from fastapi import Depends, Header, Request
from fastapi.security.utils import get_authorization_scheme_param
from sqlalchemy.orm import Session
from starlette.requests import HTTPConnection

from ..core.config import AppSettings
from ..core.errors import AuthenticationMissing
from ..core.security import decode_token
from ..crud.sessions import resolve_session
from ..crud.users import get_user
from ..db.session import get_db, parse_row_id
from ..middlewares.request_id import user_id_var
from ..services.sync import SyncEngine


class AuthContext:
    def __init__(self, *, user_id: int, scheme: str, session_id: str | None = None) -> None:
        self.user_id = user_id
        self.scheme = scheme
        self.session_id = session_id


def get_app_settings(request: Request) -> AppSettings:
    return request.app.state.settings


def get_sync_engine(request: Request) -> SyncEngine:
    return request.app.state.sync


def _authenticated(request: Request, auth: AuthContext) -> AuthContext:
    user_id_var.set(auth.user_id)
    request.state.auth = auth
    return auth


def session_user_id(conn: HTTPConnection, db: Session, settings: AppSettings) -> int | None:
    """Resolve the ``sessionId`` cookie to a user id, if it names a live session."""

    return resolve_session(db, conn.cookies.get(settings.SESSION_COOKIE_NAME))


def channel_user_id(conn: HTTPConnection, db: Session, settings: AppSettings) -> int | None:
    """Identify who a push channel belongs to.

    In ``session`` mode this is the same check as the HTTP API. In
    ``user_cookie`` mode the plaintext ``userId`` cookie is trusted as-is:
    it only selects whose snapshots the socket receives, and anyone can
    forge it.
    """

    if settings.channel_uses_session:
        return session_user_id(conn, db, settings)
    return parse_row_id((conn.cookies.get(settings.USER_COOKIE_NAME) or "").strip())


def optional_user(
    request: Request,
    db: Session = Depends(get_db),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> AuthContext | None:
    settings = get_app_settings(request)
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    user_id = resolve_session(db, token)
    if user_id is not None:
        return _authenticated(request, AuthContext(user_id=user_id, scheme="session", session_id=token))

    if authorization:
        scheme, credentials = get_authorization_scheme_param(authorization)
        if scheme.lower() == "bearer" and credentials:
            try:
                payload = decode_token(credentials, verify_type="access", config=settings)
            except ValueError as exc:
                raise AuthenticationMissing(str(exc)) from exc
            # A token can outlive the account it was issued for.
            if get_user(db, payload.user_id) is None:
                raise AuthenticationMissing("Unknown user")
            return _authenticated(request, AuthContext(user_id=payload.user_id, scheme="jwt"))
    return None


def require_user(auth: AuthContext | None = Depends(optional_user)) -> AuthContext:
    if auth is None:
        raise AuthenticationMissing()
    return auth
