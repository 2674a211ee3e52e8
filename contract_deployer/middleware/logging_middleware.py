"""
HTTP request logging middleware.

Logs every request with method, path, status code, and duration. Deployment
runs inherit the bound ``request_id`` so their logs correlate with the call
that started them.
"""

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.stdlib.get_logger("http")

# Polled by load balancers; only logged when they fail
QUIET_PATHS = frozenset({"/healthz"})


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log HTTP requests with timing and status info."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        http_request_id = request.headers.get("x-request-id", str(uuid.uuid4())[:8])

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(http_request_id=http_request_id)

        start = time.perf_counter()
        status_code = 500

        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers["x-request-id"] = http_request_id
            return response
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000, 1)

            if status_code >= 500:
                log = logger.error
            elif status_code >= 400:
                log = logger.warning
            elif request.url.path in QUIET_PATHS:
                log = logger.debug
            else:
                log = logger.info

            log(
                "http_request",
                method=request.method,
                path=request.url.path,
                status=status_code,
                duration_ms=duration_ms,
            )
