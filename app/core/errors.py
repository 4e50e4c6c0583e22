"""Application error types and FastAPI exception handlers.

Every error raised on purpose by a service derives from ``ApiError`` and is
serialized as ``{success, statusCode, message, details}``.  Anything else
becomes a generic 500; the traceback is only exposed outside production.
"""

from __future__ import annotations

import logging
import traceback
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse

from app.core.config import settings

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Base error carrying an HTTP status code and optional details."""

    def __init__(
        self,
        status_code: int,
        message: str,
        details: Any = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "success": False,
            "statusCode": self.status_code,
            "message": self.message,
        }
        if self.details is not None:
            payload["details"] = self.details
        return payload


class ValidationError(ApiError):
    """Client-supplied data failed a business rule (412)."""

    def __init__(self, details: Any = None, message: str = "Validation failed") -> None:
        super().__init__(412, message, details)


class InviteStateError(ValidationError):
    """Invite cannot transition from its current state."""

    def __init__(self, message: str) -> None:
        super().__init__(details={"invite_status": [message]}, message=message)
        self.status_code = 400


class AuthenticationError(ApiError):
    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(401, message)


class ForbiddenError(ApiError):
    def __init__(self, message: str = "Insufficient permissions") -> None:
        super().__init__(403, message)


class NotFoundError(ApiError):
    def __init__(self, resource: str = "Resource") -> None:
        super().__init__(404, f"{resource} not found")


class EnrollmentExistsError(ApiError):
    def __init__(self, message: str = "User is already enrolled in this exam") -> None:
        super().__init__(409, message)


class DuplicateRecordError(Exception):
    """Raised by repositories when a unique constraint rejects a write."""


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------

async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "api_error",
            extra={"path": request.url.path, "status_code": exc.status_code, "error": exc.message},
        )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    details: dict[str, list[str]] = {}
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(loc) or "request"
        details.setdefault(field, []).append(error.get("msg", "Invalid value"))
    return JSONResponse(status_code=412, content=ValidationError(details).to_dict())


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "unhandled_error",
        extra={"path": request.url.path, "error": str(exc)},
        exc_info=exc,
    )
    error: dict[str, Any] = {"code": 500, "message": "Internal server error"}
    if settings.ENVIRONMENT != "production":
        error["stack"] = "".join(
            traceback.format_exception(type(exc), exc, exc.__traceback__)
        )
    return JSONResponse(status_code=500, content={"success": False, "error": error})


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the application's error handlers to ``app``."""
    app.add_exception_handler(ApiError, api_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, request_validation_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_error_handler)
