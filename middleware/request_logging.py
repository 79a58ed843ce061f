"""
Request logging middleware. Logs method, path, status, duration and a
request id. Never logs bodies or query strings.
"""
import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log each request and echo (or mint) an X-Request-ID header."""

    async def dispatch(self, request: Request, call_next) -> Response:
        method = request.method
        path = request.scope.get("path", "")
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            duration_ms = (time.perf_counter() - start) * 1000
            logger.exception(
                "request_failed method=%s path=%s request_id=%s duration_ms=%.1f",
                method, path, request_id, duration_ms,
            )
            raise
        duration_ms = (time.perf_counter() - start) * 1000
        status = response.status_code
        if status >= 500:
            log = logger.error
        elif status >= 400:
            log = logger.warning
        else:
            log = logger.info
        log(
            "request_finished method=%s path=%s status=%s request_id=%s duration_ms=%.1f",
            method, path, status, request_id, duration_ms,
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
