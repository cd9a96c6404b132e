"""JSON envelope shared by every dashboard endpoint and WebSocket error frame.

    {
        "code": 0,              // 0 = success, otherwise an AppError code
        "message": "success",
        "data": {...},          // null on error
        "retryable": false,     // a remote write failed and the same request may be resent
        "timestamp": "...",
        "request_id": "req_..."
    }
"""

import uuid
from typing import Any

from pydantic import BaseModel, Field

from src.mk_common.datetime_utils import utc_now
from src.mk_common.errors import AppError


def new_request_id() -> str:
    return f"req_{uuid.uuid4().hex[:12]}"


class ApiResponse(BaseModel):
    code: int = 0
    message: str = "success"
    data: Any = None
    retryable: bool = False
    timestamp: str = Field(default_factory=lambda: utc_now().isoformat())
    request_id: str = Field(default_factory=new_request_id)


def success_response(
    data: Any = None, message: str = "success", request_id: str | None = None
) -> ApiResponse:
    resp = ApiResponse(data=data, message=message)
    if request_id:
        resp.request_id = request_id
    return resp


def error_response(
    code: int, message: str, retryable: bool = False, request_id: str | None = None
) -> ApiResponse:
    resp = ApiResponse(code=code, message=message, retryable=retryable)
    if request_id:
        resp.request_id = request_id
    return resp


def from_app_error(exc: AppError, request_id: str | None = None) -> ApiResponse:
    return error_response(exc.code, exc.message, exc.retryable, request_id)
