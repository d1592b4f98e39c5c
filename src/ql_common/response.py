"""Unified API response envelope.

Every endpoint, success or AppError, returns:
{
    "code": 0,           // 0=success, otherwise the AppError code
    "message": "success",
    "data": { ... },     // null on error
    "timestamp": "...",
    "request_id": "..."  // same id RequestLogMiddleware logged for the request
}

Amounts inside `data` are decimal strings (see fixed_point.to_display).
"""

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field
from starlette.requests import Request

from src.ql_common.datetime_utils import utc_now


def new_request_id() -> str:
    return f"req_{uuid.uuid4().hex[:12]}"


class ApiResponse(BaseModel):
    code: int = 0
    message: str = "success"
    data: Any = None
    timestamp: str = Field(default_factory=lambda: utc_now().isoformat())
    request_id: str = Field(default_factory=new_request_id)


def _request_id(request: Request | None) -> str:
    if request is None:
        return new_request_id()
    return getattr(request.state, "request_id", None) or new_request_id()


def success_response(data: Any = None, request: Request | None = None) -> ApiResponse:
    return ApiResponse(code=0, message="success", data=data, request_id=_request_id(request))


def error_response(code: int, message: str, request: Request | None = None) -> ApiResponse:
    return ApiResponse(code=code, message=message, data=None, request_id=_request_id(request))


def stamp(at: datetime | None) -> str | None:
    """ISO-8601 rendering for optional timestamps placed directly in `data`."""
    return at.isoformat() if at is not None else None
