"""Browser-facing pages: the index page plus form signup, login and logout.

Successful signup or login issues a session token and sets two cookies:
``sessionId`` (HttpOnly, checked by the API and, by default, the channel) and
``userId`` (readable by the page, used by the channel only in ``user_cookie``
mode).
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.orm import Session

from ..core.config import AppSettings
from ..crud.sessions import issue_session, revoke_session
from ..crud.timers import list_timers
from ..crud.users import authenticate, create_user, get_user
from ..db.session import get_db
from ..deps.auth import AuthContext, get_app_settings, get_sync_engine, optional_user
from ..services.projection import project_all
from ..services.sync import SyncEngine

logger = logging.getLogger(__name__)

router = APIRouter()

AUTH_ERROR_MESSAGE = "Wrong username or password"


def _auth_error_redirect() -> RedirectResponse:
    return RedirectResponse(url="/?authError=true", status_code=303)


def _login_response(db: Session, user, settings: AppSettings) -> RedirectResponse:
    token = issue_session(db, user.id)
    response = RedirectResponse(url="/", status_code=303)
    response.set_cookie(
        settings.SESSION_COOKIE_NAME,
        token,
        httponly=True,
        samesite="lax",
        secure=settings.COOKIE_SECURE,
    )
    response.set_cookie(
        settings.USER_COOKIE_NAME,
        str(user.id),
        samesite="lax",
        secure=settings.COOKIE_SECURE,
    )
    return response


@router.get("/", response_class=HTMLResponse)
def index_page(
    request: Request,
    authError: str | None = None,
    auth: AuthContext | None = Depends(optional_user),
    db: Session = Depends(get_db),
    sync: SyncEngine = Depends(get_sync_engine),
):
    user = get_user(db, auth.user_id) if auth else None
    timers = project_all(list_timers(db, user.id), sync.clock()) if user else []
    error = AUTH_ERROR_MESSAGE if authError == "true" else authError
    context = {
        "user": user,
        "active_timers": [t for t in timers if t.is_active],
        "finished_timers": [t for t in timers if not t.is_active],
        "auth_error": error,
    }
    return request.app.state.templates.TemplateResponse(request, "index.html", context)


@router.post("/signup")
def signup(
    username: str = Form(""),
    password: str = Form(""),
    db: Session = Depends(get_db),
    settings: AppSettings = Depends(get_app_settings),
):
    try:
        user = create_user(db, username, password)
    except ValueError:
        user = None
    if user is None:
        return _auth_error_redirect()
    logger.info("user.signed_up", extra={"extra_data": {"user_id": user.id}})
    return _login_response(db, user, settings)


@router.post("/login")
def login(
    username: str = Form(""),
    password: str = Form(""),
    db: Session = Depends(get_db),
    settings: AppSettings = Depends(get_app_settings),
):
    user = authenticate(db, username, password)
    if user is None:
        return _auth_error_redirect()
    return _login_response(db, user, settings)


@router.get("/logout")
def logout(
    auth: AuthContext | None = Depends(optional_user),
    db: Session = Depends(get_db),
    settings: AppSettings = Depends(get_app_settings),
):
    response = RedirectResponse(url="/", status_code=303)
    if auth is None:
        return response
    revoke_session(db, auth.session_id)
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    response.delete_cookie(settings.USER_COOKIE_NAME)
    return response
