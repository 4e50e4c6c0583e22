"""Uniform JSON response envelope.

All ``/api/v1`` routes return::

    {success, statusCode, message, data, metadata, timestamp}
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel


class ApiResponse(BaseModel):
    success: bool = True
    statusCode: int = 200
    message: str = "Request successful"
    data: Any = None
    metadata: dict[str, Any] | None = None
    timestamp: str


def _envelope(
    data: Any,
    message: str,
    status_code: int,
    metadata: dict[str, Any] | None = None,
) -> dict[str, Any]:
    body = ApiResponse(
        statusCode=status_code,
        message=message,
        data=jsonable_encoder(data),
        metadata=jsonable_encoder(metadata) if metadata is not None else None,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )
    return body.model_dump()


def ok(data: Any = None, message: str = "Request successful") -> dict[str, Any]:
    return _envelope(data, message, 200)


def created(data: Any = None, message: str = "Resource created") -> dict[str, Any]:
    return _envelope(data, message, 201)


def paginated(
    items: list[Any],
    pagination: Any,
    message: str = "Request successful",
) -> dict[str, Any]:
    """Wrap a page of items, exposing page bookkeeping under ``metadata.pagination``."""
    return _envelope(items, message, 200, {"pagination": pagination})
