"""Per-request correlation id and access log for the dashboard API.

A request id (``req_`` + 12 hex) is put on request.state for ApiResponse
and echoed back in the ``X-Request-ID`` header. A caller-supplied
``X-Request-ID`` is reused when it looks like one of ours, so a browser
retry of a failed order write can be traced across both attempts.

    INFO [POST] /api/v1/dashboard/orders/abc/advance 200 23ms req_a1b2c3d4e5f6

Health probes log at DEBUG.
"""

import logging
import re
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("mk.request")

REQUEST_ID_HEADER = "X-Request-ID"
_REQUEST_ID_RE = re.compile(r"^req_[0-9a-f]{12}$")
_QUIET_PATHS = frozenset({"/health"})


def _request_id_for(request: Request) -> str:
    supplied = request.headers.get(REQUEST_ID_HEADER, "")
    if _REQUEST_ID_RE.match(supplied):
        return supplied
    return f"req_{uuid.uuid4().hex[:12]}"


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = _request_id_for(request)
        request.state.request_id = request_id
        path = request.url.path
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "[%s] %s failed after %.0fms %s",
                request.method,
                path,
                (time.perf_counter() - started) * 1000,
                request_id,
            )
            raise

        response.headers[REQUEST_ID_HEADER] = request_id
        level = logging.DEBUG if path in _QUIET_PATHS else logging.INFO
        logger.log(
            level,
            "[%s] %s %d %.0fms %s",
            request.method,
            path,
            response.status_code,
            (time.perf_counter() - started) * 1000,
            request_id,
        )
        return response
