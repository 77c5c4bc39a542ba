from __future__ import annotations

import secrets
from datetime import datetime, timedelta, timezone
from typing import Any

import bcrypt
from jose import JWTError, jwt
from pydantic import BaseModel, ValidationError

from .config import AppSettings, settings

ALGORITHM = "HS256"
AUDIENCE = "live-timers-clients"
ISSUER = "live-timers"
SESSION_TOKEN_BYTES = 16


class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int


class TokenPayload(BaseModel):
    sub: str
    exp: datetime
    iat: datetime
    typ: str
    aud: str
    iss: str

    @property
    def user_id(self) -> int:
        return int(self.sub)


def hash_password(plain: str) -> str:
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    if not hashed:
        return False
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed hash in storage.
        return False


def new_session_token() -> str:
    """Opaque, URL-safe session identifier stored in the ``sessionId`` cookie."""

    return secrets.token_urlsafe(SESSION_TOKEN_BYTES)


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


def _encode_token(subject: str, expires_delta: timedelta, token_type: str, secret: str) -> str:
    now = _now()
    payload: dict[str, Any] = {
        "sub": subject,
        "iat": int(now.timestamp()),
        "exp": int((now + expires_delta).timestamp()),
        "typ": token_type,
        "aud": AUDIENCE,
        "iss": ISSUER,
    }
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def issue_token_pair(user_id: int, *, config: AppSettings | None = None) -> TokenPair:
    config = config or settings
    access_delta = timedelta(minutes=config.JWT_ACCESS_TTL_MIN)
    refresh_delta = timedelta(days=config.JWT_REFRESH_TTL_DAYS)
    subject = str(user_id)
    return TokenPair(
        access_token=_encode_token(subject, access_delta, "access", config.JWT_SECRET),
        refresh_token=_encode_token(subject, refresh_delta, "refresh", config.JWT_SECRET),
        expires_in=int(access_delta.total_seconds()),
    )


def decode_token(token: str, *, verify_type: str | None = None, config: AppSettings | None = None) -> TokenPayload:
    config = config or settings
    try:
        decoded = jwt.decode(
            token,
            config.JWT_SECRET,
            algorithms=[ALGORITHM],
            audience=AUDIENCE,
            issuer=ISSUER,
        )
    except JWTError as exc:
        raise ValueError("Invalid token") from exc
    try:
        payload = TokenPayload.model_validate(decoded)
    except ValidationError as exc:
        raise ValueError("Invalid token payload") from exc
    if verify_type and payload.typ != verify_type:
        raise ValueError("Invalid token type")
    if not payload.sub.isdigit():
        raise ValueError("Invalid token subject")
    return payload
