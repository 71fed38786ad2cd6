"""
Deskmate Backend — Request ID Middleware
==========================================

What:  Assigns a correlation ID to each request and returns it in a header.
How:   Reuses the client's X-Request-ID if it sent one, otherwise generates
       a short UUID. The ID is stored in a ContextVar (for loggers and
       exception handlers) and in `request.state` (for route handlers).
Who:   Applied to every request via Starlette middleware.

Error bodies carry the same ID in `request_id`, so a client can quote it
and the matching log lines can be found.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one thread each see their own ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

REQUEST_ID_HEADER = "X-Request-ID"


def new_request_id() -> str:
    # 8 hex chars is plenty for correlating log lines
    return uuid.uuid4().hex[:8]


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Attach a request ID to the context, the request state and the response."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get(REQUEST_ID_HEADER) or new_request_id()

        token = request_id_var.set(rid)
        request.state.request_id = rid
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)

        response.headers[REQUEST_ID_HEADER] = rid
        return response
