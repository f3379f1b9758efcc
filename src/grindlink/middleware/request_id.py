"""Request context middleware — request id, method and path on every log line.

Learn: The id comes from the incoming X-Request-ID header or is freshly
generated. request_id, method and path are bound to structlog's
contextvars, so records.create_failed and broadcast.publish_failed can
be traced back to the call that caused them. One http.request_completed
line per request records the final status code and duration.
"""

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.get_logger()


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Bind request context for logging and echo X-Request-ID back."""

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        started = time.perf_counter()
        response: Response = await call_next(request)
        duration_ms = round((time.perf_counter() - started) * 1000, 1)

        log = logger.warning if response.status_code >= 500 else logger.info
        log(
            "http.request_completed",
            status_code=response.status_code,
            duration_ms=duration_ms,
        )
        response.headers["X-Request-ID"] = request_id
        return response
