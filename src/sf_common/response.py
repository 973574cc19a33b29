"""JSON envelope for the auth, catalog, messaging and admin routes.

    {"code": 0, "message": "success", "data": {...},
     "timestamp": "2024-01-01T00:00:00+00:00", "request_id": "req_..."}

code is 0 on success and the AppError code otherwise; request_id matches the
X-Request-ID response header.
"""

import uuid
from typing import Any

from fastapi import Request
from pydantic import BaseModel, Field

from src.sf_common.datetime_utils import utc_now


def _request_id(request: Request | None) -> str:
    if request is not None and hasattr(request.state, "request_id"):
        return request.state.request_id
    return f"req_{uuid.uuid4().hex[:12]}"


class ApiResponse(BaseModel):
    code: int = 0
    message: str = "success"
    data: Any = None
    timestamp: str = Field(default_factory=lambda: utc_now().isoformat())
    request_id: str = ""


def respond(request: Request, data: Any = None, message: str = "success") -> ApiResponse:
    return ApiResponse(data=data, message=message, request_id=_request_id(request))


def error_body(request: Request | None, code: int, message: str) -> dict[str, Any]:
    return ApiResponse(code=code, message=message, request_id=_request_id(request)).model_dump()
