"""
Journal API — Access Log Middleware
====================================

What:  One log line per request: method, path, status, duration, request id.
Why:   Gives operators a request-level view that lines up with the
       application logs through the shared request id.
How:   Times the downstream call with perf_counter and picks the log level
       from the status class (5xx ERROR, 4xx WARNING, otherwise INFO).

Never logged: request or response bodies, query strings, Authorization
headers or cookies. Bodies carry journal content and file bytes; the
headers carry bearer tokens and the admin_session cookie.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from journal_api.middleware.request_id import request_id_var

logger = logging.getLogger("journal_api.access")

# Probed every few seconds by orchestrators.
QUIET_PATHS = frozenset({"/health"})


def level_for_status(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Access logging; runs inside RequestIDMiddleware so the id is set."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in QUIET_PATHS:
            return await call_next(request)

        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000

        client_ip = request.client.host if request.client else "unknown"
        rid = request_id_var.get("")
        logger.log(
            level_for_status(response.status_code),
            "%s %s %d %.1fms [%s] from %s",
            request.method,
            path,
            response.status_code,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": path,
                "status": response.status_code,
                "duration_ms": round(duration_ms, 2),
            },
        )
        return response
