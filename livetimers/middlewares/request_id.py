from __future__ import annotations

import logging
import time
from contextvars import ContextVar
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)
user_id_var: ContextVar[int | None] = ContextVar("user_id", default=None)
logger = logging.getLogger("livetimers.request")

_QUIET_PREFIXES = ("/static/", "/health", "/metrics")


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Tag each HTTP request with a correlation id and log one line when it finishes.

    WebSocket upgrades bypass ``BaseHTTPMiddleware``; the channel route logs
    its own lifecycle.
    """

    def __init__(self, app, header_name: str = "X-Request-ID") -> None:  # type: ignore[override]
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(self.header_name) or uuid4().hex
        request.state.request_id = request_id
        request.state.auth = None
        reset = request_id_var.set(request_id)
        started = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(reset)
        response.headers[self.header_name] = request_id

        data = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "status": response.status_code,
            "duration_ms": round((time.perf_counter() - started) * 1000, 2),
        }
        # Dependencies run in a copied context, so the caller is read back from request.state.
        auth = request.state.auth
        if auth is not None:
            data["user_id"] = auth.user_id
            data["auth"] = auth.scheme
        level = logging.DEBUG if request.url.path.startswith(_QUIET_PREFIXES) else logging.INFO
        logger.log(level, "request.completed", extra={"extra_data": data})
        return response
