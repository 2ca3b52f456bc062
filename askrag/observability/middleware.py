"""
HTTP observability middleware.

Dependencies: fastapi, starlette, askrag.observability.context
System role: Correlation IDs and access logging for every API request
"""

import logging
import time

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from askrag.observability.context import clear_correlation_id, set_correlation_id

logger = logging.getLogger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"

# Polled by frontends; logged at DEBUG only
QUIET_PATHS = frozenset({"/api/health", "/api/stats"})


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs one line per request with status and handler time."""

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        method, path = request.method, request.url.path
        level = logging.DEBUG if path in QUIET_PATHS else logging.INFO

        try:
            response: Response = await call_next(request)
        except Exception as e:
            logger.exception(
                f"{method} {path} - unhandled {type(e).__name__}",
                extra={"method": method, "path": path, "error_msg": str(e)},
            )
            raise

        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
        # Streams keep running after the handler returns; only time-to-headers is known here
        streaming = response.headers.get("content-type", "").startswith("text/event-stream")
        logger.log(
            level,
            f"{method} {path} - {response.status_code}" + (" (stream opened)" if streaming else ""),
            extra={
                "method": method,
                "path": path,
                "status_code": response.status_code,
                "process_time_ms": elapsed_ms,
                "client_host": request.client.host if request.client else None,
            },
        )
        return response


class CorrelationMiddleware(BaseHTTPMiddleware):
    """
    Binds a correlation ID to the request context and echoes it back.

    The endpoint (including a streaming body) runs in a task that copies the
    context, so clearing here does not affect log lines of a running stream.
    """

    async def dispatch(self, request: Request, call_next):
        correlation_id = set_correlation_id(request.headers.get(CORRELATION_HEADER))
        try:
            response: Response = await call_next(request)
        finally:
            clear_correlation_id()
        response.headers[CORRELATION_HEADER] = correlation_id
        return response
