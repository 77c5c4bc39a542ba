from __future__ import annotations

from pydantic import BaseModel, Field


class TokenRequest(BaseModel):
    """Credentials for headless clients; the same pair the login form posts."""

    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class RefreshRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1)
