"""
unistate_devenv.observability.middleware

Request logging for the status API: one `request` event per call, carrying a
request id, the route and the elapsed time.
"""

from __future__ import annotations

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from unistate_devenv.observability.logging import get_logger

log = get_logger(__name__)


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
        structlog.contextvars.bind_contextvars(request_id=request_id, path=request.url.path)
        started = time.perf_counter()
        try:
            response: Response = await call_next(request)
            log.info(
                "request",
                method=request.method,
                status=response.status_code,
                elapsed_ms=round((time.perf_counter() - started) * 1000, 1),
            )
        finally:
            structlog.contextvars.unbind_contextvars("request_id", "path")

        response.headers["x-request-id"] = request_id
        return response
