"""Request logging middleware.

Every request gets a request_id on request.state, echoed as X-Request-ID. A
caller-supplied X-Request-ID is reused so a storefront page and its API calls
share one id in the logs.

    INFO [POST] /api/v1/orders 201 12ms req_a1b2c3d4e5f6

Server-sent event streams are logged when their headers go out, not when the
client disconnects.
"""

import logging
import re
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("sf.request")

_HEADER = "X-Request-ID"
_VALID_ID = re.compile(r"^[A-Za-z0-9_.-]{1,64}$")


def _incoming_id(request: Request) -> str:
    supplied = request.headers.get(_HEADER, "")
    if _VALID_ID.match(supplied):
        return supplied
    return f"req_{uuid.uuid4().hex[:12]}"


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.state.request_id = _incoming_id(request)
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception("[%s] %s failed %s", request.method, request.url.path, request_id)
            raise
        elapsed_ms = (time.perf_counter() - start) * 1000

        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(
            level,
            "[%s] %s %d %.0fms %s",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            request_id,
        )
        response.headers[_HEADER] = request_id
        return response
