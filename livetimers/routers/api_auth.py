from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..core.config import AppSettings
from ..core.errors import AuthenticationMissing
from ..core.security import TokenPair, decode_token, issue_token_pair
from ..crud.users import authenticate, get_user
from ..db.session import get_db
from ..deps.auth import get_app_settings
from ..schemas.auth import RefreshRequest, TokenRequest

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/token", response_model=TokenPair, summary="Exchange credentials for JWTs")
def exchange_token(
    payload: TokenRequest,
    db: Session = Depends(get_db),
    settings: AppSettings = Depends(get_app_settings),
):
    user = authenticate(db, payload.username, payload.password)
    if user is None:
        raise AuthenticationMissing("Invalid username or password")
    return issue_token_pair(user.id, config=settings)


@router.post("/refresh", response_model=TokenPair, summary="Refresh access token")
def refresh_token(
    payload: RefreshRequest,
    db: Session = Depends(get_db),
    settings: AppSettings = Depends(get_app_settings),
):
    try:
        claims = decode_token(payload.refresh_token, verify_type="refresh", config=settings)
    except ValueError as exc:
        raise AuthenticationMissing(str(exc)) from exc
    if get_user(db, claims.user_id) is None:
        raise AuthenticationMissing("Unknown user")
    return issue_token_pair(claims.user_id, config=settings)
