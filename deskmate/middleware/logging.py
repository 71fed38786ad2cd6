"""
Deskmate Backend — Request Logging Middleware
===============================================

What:  One access log line per HTTP request.
How:   Times the request, then logs method, path, status, duration, request
       ID, client IP and, once the auth gate has run, the caller's account id.
Who:   Applied to every request via Starlette middleware, inside
       RequestIDMiddleware so the request ID is already set.

What is never logged: request bodies (passwords, note contents) and the
Authorization header.

Log level follows the status code:
    5xx → ERROR, 4xx → WARNING, everything else → INFO
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from deskmate.middleware.request_id import request_id_var

logger = logging.getLogger("deskmate.access")

# Probes hit these every few seconds
QUIET_PATHS = frozenset({"/", "/health"})


def level_for_status(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs structured information about each HTTP request and response."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in QUIET_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        client_ip = request.client.host if request.client else "unknown"
        rid = request_id_var.get("")
        # Set by the auth gate; absent on public routes and rejected tokens
        account_id = getattr(request.state, "account_id", None)
        status = response.status_code

        logger.log(
            level_for_status(status),
            "%s %s %d %.1fms [%s] from %s account=%s",
            request.method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            account_id or "-",
            extra={
                "request_id": rid,
                "method": request.method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
                "account_id": str(account_id) if account_id else None,
            },
        )
        return response
