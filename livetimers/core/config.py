"""Environment-driven configuration for the Live Timers service.

``AppSettings`` is the single place every tunable lives. Values are read once
from the environment (and an optional ``.env`` file) the first time
``get_settings`` is called, then cached for the life of the process. Tests
build their own ``AppSettings`` instance and hand it to ``create_app`` rather
than mutating the cached one.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """Environment-driven application configuration."""

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    APP_NAME: str = "Live Timers"

    BASE_DIR: Path = Field(default_factory=lambda: Path(__file__).resolve().parent.parent)
    DATA_DIR: Path = Field(default_factory=lambda: Path(__file__).resolve().parents[2] / "data")
    TEMPLATES_DIR: Path | None = None
    STATIC_DIR: Path | None = None
    TZ: str = "UTC"

    DB_URL: str | None = Field(
        default=None,
        validation_alias=AliasChoices("DB_URL", "DATABASE_URL"),
    )

    # Cookie names match what the browser script and the channel gate expect.
    SESSION_COOKIE_NAME: str = "sessionId"
    USER_COOKIE_NAME: str = "userId"
    COOKIE_SECURE: bool = False

    # "session" verifies the session token on channel open; "user_cookie"
    # trusts the plaintext user id cookie and only decides who receives pushes.
    CHANNEL_AUTH: Literal["session", "user_cookie"] = "session"
    # Period of the active-timer broadcast. 0 disables the ticker.
    TICK_INTERVAL_SEC: float = Field(default=1.0, ge=0)

    JWT_SECRET: str = "change-me"
    JWT_ACCESS_TTL_MIN: int = 15
    JWT_REFRESH_TTL_DAYS: int = 7

    LOG_LEVEL: str = "INFO"
    METRICS_ENABLED: bool = True

    HOST: str = "0.0.0.0"
    PORT: int = 8000

    def _resolve_path(self, base: Path | None, fallback: Path) -> Path:
        return base if base is not None else fallback

    @property
    def templates_dir(self) -> Path:
        return self._resolve_path(self.TEMPLATES_DIR, self.BASE_DIR / "templates")

    @property
    def static_dir(self) -> Path:
        return self._resolve_path(self.STATIC_DIR, self.BASE_DIR / "static")

    @property
    def database_url(self) -> str:
        # Default to a SQLite file under DATA_DIR so a bare checkout boots.
        return self.DB_URL or f"sqlite:///{self.DATA_DIR / 'timers.db'}"

    @property
    def channel_uses_session(self) -> bool:
        return self.CHANNEL_AUTH == "session"


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    settings = AppSettings()
    settings.DATA_DIR.mkdir(parents=True, exist_ok=True)
    return settings


settings = get_settings()
