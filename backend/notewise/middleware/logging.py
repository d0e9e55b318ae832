"""
Notewise Backend — Access Logging Middleware
==============================================

What:  One access log line per HTTP request: method, path, status, duration.
How:   Times the downstream call and picks the level from the status code
       (5xx ERROR, 4xx WARNING, otherwise INFO).
Who:   Applied to every request except the liveness check.

Privacy:
    Request bodies carry note content and are never logged. The user id is
    logged because it is an opaque identifier, not a credential.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("notewise.access")

# Polled every few seconds by orchestrators; logging them drowns real traffic
QUIET_PATHS = {"/health"}


def _level_for(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
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
        user_id = request.headers.get("X-User-ID", "-")
        logger.log(
            _level_for(response.status_code),
            "%s %s %d %.1fms user=%s from %s",
            request.method,
            path,
            response.status_code,
            duration_ms,
            user_id,
            client_ip,
        )
        return response
