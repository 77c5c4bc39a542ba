"""Shared fixtures: an application wired to a throwaway SQLite file."""

import os
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATA_DIR", str(ROOT / "data"))

from livetimers import create_app
from livetimers.core.config import AppSettings


@pytest.fixture()
def settings(tmp_path):
    return AppSettings(
        DATA_DIR=tmp_path,
        TICK_INTERVAL_SEC=0,
        METRICS_ENABLED=False,
        JWT_SECRET="test-secret",
        CHANNEL_AUTH="session",
    )


@pytest.fixture()
def engine(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'test.db'}", connect_args={"check_same_thread": False})
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture()
def app(settings, engine):
    return create_app(settings, engine)


@pytest.fixture()
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def signup(client):
    """Create an account through the form flow and return its session token.

    The client's cookie jar is cleared afterwards so each test passes the
    identity it wants explicitly.
    """

    def _signup(username: str, password: str = "s3cret") -> str:
        response = client.post(
            "/signup",
            data={"username": username, "password": password},
            follow_redirects=False,
        )
        assert response.status_code == 303
        token = response.cookies.get("sessionId")
        assert token
        client.cookies.clear()
        return token

    return _signup
