"""Request logging middleware."""

import time
import uuid
from typing import Callable

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from healthbridge.core.logging import get_logger

logger = get_logger(__name__)

QUIET_PATH_PREFIXES = ("/health/",)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs each request with timing and a request ID bound to the log context."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())[:8]

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        # Liveness probes are too frequent to log
        quiet = request.url.path.startswith(QUIET_PATH_PREFIXES)
        start_time = time.perf_counter()

        if not quiet:
            logger.info("request_started")

        try:
            response = await call_next(request)
        except Exception as e:
            logger.exception(
                "request_failed",
                duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
                error=str(e),
            )
            raise

        if not quiet:
            logger.info(
                "request_completed",
                status_code=response.status_code,
                duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
            )

        response.headers["X-Request-ID"] = request_id
        return response
