"""Request / response logging middleware using structlog.

Logs each request with method, path, status code, and timing.  The request
id and, for session routes, the project id are bound to structlog's context
variables so every engine log line emitted while handling the request
carries them.
"""

from __future__ import annotations

import re
import time
import uuid

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from src.utils.logging import get_logger

logger = get_logger(__name__)

_SESSION_PATH = re.compile(r"/sessions/([^/]+)")


class LoggingMiddleware(BaseHTTPMiddleware):
    """Logs every HTTP request with timing and response status."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        start = time.perf_counter()
        method = request.method
        path = request.url.path

        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex[:16]
        match = _SESSION_PATH.search(path)

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)
        if match:
            structlog.contextvars.bind_contextvars(project_id=match.group(1))

        logger.info("request_started", method=method, path=path)

        try:
            response = await call_next(request)
        except Exception:
            elapsed_ms = round((time.perf_counter() - start) * 1000, 2)
            logger.error("request_failed", method=method, path=path, elapsed_ms=elapsed_ms)
            raise
        finally:
            structlog.contextvars.clear_contextvars()

        elapsed_ms = round((time.perf_counter() - start) * 1000, 2)
        log_fn = logger.info if response.status_code < 400 else logger.warning
        log_fn(
            "request_completed",
            method=method,
            path=path,
            status_code=response.status_code,
            elapsed_ms=elapsed_ms,
            request_id=request_id,
        )
        response.headers["X-Request-ID"] = request_id
        return response
