"""Application factory and top-level wiring for Live Timers.

``create_app`` is where the pieces meet:

* configuration (``core.config``) decides the database URL, cookie names,
  channel auth mode and tick period;
* the database engine and session factory back every request, the push
  channel gate and the ticker;
* one ``ConnectionRegistry`` and one ``SyncEngine`` per application instance
  hold the live WebSocket channels and push timer snapshots through them;
* the lifespan hook starts the once-a-second active timer broadcast and stops
  it on shutdown;
* routers add the HTML page, form login, token API, timer API and ``/ws``.

Tests call ``create_app`` with their own settings and engine; ``main.py``
builds the default instance served by uvicorn.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from prometheus_fastapi_instrumentator import Instrumentator
from sqlalchemy.engine import Engine

from .core.config import AppSettings, get_settings
from .core.errors import register_exception_handlers
from .core.jinja import get_templates
from .db.session import Base, make_engine, make_session_factory
from .middlewares.request_id import RequestIdMiddleware
from .middlewares.security_headers import SecurityHeadersMiddleware
from .services.registry import ConnectionRegistry
from .services.sync import SyncEngine
from .services.ticker import Ticker

# Importing the SQLAlchemy models registers them with the metadata. Without
# this step ``Base.metadata.create_all`` would not know about our tables.
from .models import user as _user  # noqa: F401
from .models import session as _session  # noqa: F401
from .models import timer as _timer  # noqa: F401


def create_app(settings: AppSettings | None = None, engine: Engine | None = None) -> FastAPI:
    settings = settings or get_settings()
    engine = engine or make_engine(settings.database_url)
    Base.metadata.create_all(bind=engine)

    session_factory = make_session_factory(engine)
    registry = ConnectionRegistry()
    sync = SyncEngine(registry, session_factory)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        ticker = None
        if settings.TICK_INTERVAL_SEC > 0:
            ticker = Ticker(sync.broadcast_active, settings.TICK_INTERVAL_SEC)
            ticker.start()
        app.state.ticker = ticker
        try:
            yield
        finally:
            if ticker is not None:
                await ticker.stop()

    app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = session_factory
    app.state.registry = registry
    app.state.sync = sync
    app.state.templates = get_templates(settings)
    app.state.ticker = None

    app.add_middleware(SecurityHeadersMiddleware, hsts=settings.COOKIE_SECURE)
    app.add_middleware(RequestIdMiddleware)
    register_exception_handlers(app)

    app.mount("/static", StaticFiles(directory=str(settings.static_dir)), name="static")

    from .routers import api_auth, api_timers, auth_ui, channel

    app.include_router(auth_ui.router)
    app.include_router(api_auth.router)
    app.include_router(api_timers.router)
    app.include_router(channel.router)

    @app.get("/health")
    async def health() -> dict[str, bool]:
        return {"ok": True}

    if settings.METRICS_ENABLED:
        Instrumentator().instrument(app).expose(app, include_in_schema=False)

    return app


__all__ = ["create_app"]
