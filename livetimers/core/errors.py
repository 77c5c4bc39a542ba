from __future__ import annotations

import logging
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette import status
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class AuthenticationMissing(Exception):
    """No valid session token or credential accompanied the request."""

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message)
        self.message = message


class TimerNotFound(Exception):
    """The timer does not exist, belongs to someone else, or is already stopped.

    All three cases share one message so callers cannot probe for other
    users' timer ids.
    """

    def __init__(self, timer_id: object) -> None:
        self.timer_id = timer_id
        super().__init__(f"Unknown timer ID: {timer_id}")


class ErrorEnvelope(JSONResponse):
    def __init__(
        self,
        *,
        status_code: int,
        code: str,
        message: str,
        details: Any | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        payload: dict[str, Any] = {"code": code, "message": message}
        if details is not None:
            payload["details"] = details
        super().__init__(payload, status_code=status_code, headers=headers)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    detail = exc.detail
    message = detail if isinstance(detail, str) else "Error"
    details = detail if isinstance(detail, dict) else None
    return ErrorEnvelope(
        status_code=exc.status_code,
        code="http_error",
        message=message,
        details=details,
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc):  # type: ignore[override]
    from fastapi.encoders import jsonable_encoder
    from fastapi.exceptions import RequestValidationError

    if isinstance(exc, RequestValidationError):
        return ErrorEnvelope(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            code="validation_error",
            message="Validation failed",
            details={"errors": jsonable_encoder(exc.errors())},
        )
    raise exc


async def authentication_missing_handler(request: Request, exc: AuthenticationMissing):
    return ErrorEnvelope(
        status_code=status.HTTP_401_UNAUTHORIZED,
        code="unauthorized",
        message=exc.message,
    )


async def timer_not_found_handler(request: Request, exc: TimerNotFound):
    return ErrorEnvelope(
        status_code=status.HTTP_404_NOT_FOUND,
        code="timer_not_found",
        message=str(exc),
    )


async def persistence_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(
        "persistence.failure",
        exc_info=exc,
        extra={"extra_data": {"path": request.url.path}},
    )
    return ErrorEnvelope(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        code="internal_error",
        message="Internal server error",
    )


def register_exception_handlers(app) -> None:
    from fastapi.exceptions import RequestValidationError

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(AuthenticationMissing, authentication_missing_handler)
    app.add_exception_handler(TimerNotFound, timer_not_found_handler)
    app.add_exception_handler(SQLAlchemyError, persistence_error_handler)
