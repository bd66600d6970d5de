"""ASGI middleware logging request latency."""

from __future__ import annotations

import logging
import os
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)

DEFAULT_SLOW_REQUEST_MS = 300


class RequestTimerMiddleware(BaseHTTPMiddleware):
    """Logs every request at DEBUG and the slow ones at WARNING."""

    def __init__(self, app: ASGIApp, threshold_ms: int | None = None) -> None:
        super().__init__(app)
        if threshold_ms is None:
            threshold_ms = int(os.getenv("CRUDKIT_SLOW_REQUEST_MS", str(DEFAULT_SLOW_REQUEST_MS)))
        self.threshold_ms = threshold_ms

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        level = logging.WARNING if elapsed_ms > self.threshold_ms else logging.DEBUG
        logger.log(
            level,
            "%s %s -> %d in %.1fms",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
        )
        return response
