"""
Journal API — Request ID Middleware
====================================

What:  Tags every request with a short correlation id.
Why:   Error bodies carry `request_id`, so a client reporting a failure can
       be matched to the exact server log lines for that request.
How:   Reuses an inbound X-Request-ID header when it looks sane, otherwise
       generates one; stores it in a ContextVar (read by the exception
       handlers and the access log) and echoes it in the response header.
"""

import logging
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
MAX_CLIENT_ID_LENGTH = 64

# Coroutine-local: concurrent requests on one event loop each see their own id.
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def new_request_id() -> str:
    return uuid.uuid4().hex[:8]


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Assigns the request id before any other middleware or handler runs.

    Client-supplied ids longer than MAX_CLIENT_ID_LENGTH or containing
    non-printable characters are replaced, since they end up in log lines.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get(REQUEST_ID_HEADER, "")
        if not rid or len(rid) > MAX_CLIENT_ID_LENGTH or not rid.isprintable():
            rid = new_request_id()

        # Not reset afterwards: the fallback 500 handler runs outside this
        # middleware and still needs the id. Each request has its own context.
        request_id_var.set(rid)
        request.state.request_id = rid
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = rid
        return response
