# app/middleware/request_logging.py
from __future__ import annotations

import logging
import time
from typing import Iterable, Optional, Tuple

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.core.errors import request_trace_id

logger = logging.getLogger("app.request")

QUIET_PATHS: Tuple[str, ...] = ("/api/healthz", "/api/readyz", "/docs", "/openapi.json")


def _level_for(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    return logging.WARNING if status >= 400 else logging.INFO


def _wedding_id(request: Request) -> Optional[str]:
    # path params are filled in by the router once the request was routed
    return request.scope.get("path_params", {}).get("wedding_id")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Access log for the API: who touched which wedding, with what outcome.
    Every response carries X-Request-ID; the error envelope reuses the same id.
    """

    def __init__(self, app, quiet_paths: Iterable[str] = QUIET_PATHS):
        super().__init__(app)
        self.quiet_paths = tuple(quiet_paths)

    def _quiet(self, request: Request) -> bool:
        return request.method == "OPTIONS" or request.url.path.startswith(self.quiet_paths)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        trace_id = request_trace_id(request)
        started = time.perf_counter()

        response = await call_next(request)
        response.headers["X-Request-ID"] = trace_id

        if not self._quiet(request):
            logger.log(
                _level_for(response.status_code),
                "%s %s -> %s wedding_id=%s user_id=%s dur_ms=%d trace_id=%s",
                request.method,
                request.url.path,
                response.status_code,
                _wedding_id(request),
                getattr(request.state, "user_id", None),
                (time.perf_counter() - started) * 1000,
                trace_id,
            )
        return response
