"""
Notewise Backend — Rate Limiting Middleware
=============================================

What:  Per-client-IP sliding window limit on HTTP requests.
How:   SlidingWindowLimiter keeps a deque of request timestamps per key and
       answers "allowed" or "retry after N seconds"; the middleware turns a
       refusal into a 429 with a Retry-After header.
Who:   Applied to every request except health checks and API docs.

This protects the service (and, indirectly, the Gemini quota) from a single
noisy client. It is in-memory and therefore per-process.
"""

import logging
import math
import time
from collections import defaultdict, deque
from typing import Deque, Dict, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from notewise.config import settings
from notewise.exceptions import RateLimitExceededError

logger = logging.getLogger(__name__)

EXCLUDED_PATHS = {"/health", "/health/full", "/docs", "/openapi.json", "/redoc"}


class SlidingWindowLimiter:
    """At most `limit` hits per key within any `window_seconds` span."""

    def __init__(self, limit: int, window_seconds: int):
        self.limit = limit
        self.window_seconds = window_seconds
        self._hits: Dict[str, Deque[float]] = defaultdict(deque)

    def hit(self, key: str, now: Optional[float] = None) -> Optional[int]:
        """
        Record a hit for `key`.

        Returns None if allowed, else the whole seconds until the oldest hit
        leaves the window. Refused hits are not recorded.
        """
        now = time.monotonic() if now is None else now
        hits = self._hits[key]
        while hits and hits[0] <= now - self.window_seconds:
            hits.popleft()

        if len(hits) >= self.limit:
            return max(1, math.ceil(hits[0] + self.window_seconds - now))

        hits.append(now)
        return None

    def prune(self, now: Optional[float] = None) -> int:
        """Forget keys with no hits inside the window. Returns how many were dropped."""
        now = time.monotonic() if now is None else now
        stale = [k for k, hits in self._hits.items() if not hits or hits[-1] <= now - self.window_seconds]
        for key in stale:
            del self._hits[key]
        return len(stale)

    def __len__(self) -> int:
        return len(self._hits)


class RateLimitMiddleware(BaseHTTPMiddleware):
    PRUNE_EVERY = 1000

    def __init__(self, app, limit: Optional[int] = None, window_seconds: Optional[int] = None):
        super().__init__(app)
        self.limiter = SlidingWindowLimiter(
            limit or settings.rate_limit_requests,
            window_seconds or settings.rate_limit_window,
        )
        self._seen = 0

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in EXCLUDED_PATHS:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        retry_after = self.limiter.hit(client_ip)

        self._seen += 1
        if self._seen % self.PRUNE_EVERY == 0:
            dropped = self.limiter.prune()
            if dropped:
                logger.debug("Pruned %d idle rate limit entries", dropped)

        if retry_after is not None:
            logger.warning(
                "Rate limit exceeded for %s: %d requests in %ds",
                client_ip,
                self.limiter.limit,
                self.limiter.window_seconds,
            )
            # Middleware runs outside the exception handlers, so render directly
            exc = RateLimitExceededError(retry_after=retry_after)
            return JSONResponse(
                status_code=429,
                content={
                    "error": "rate_limit_exceeded",
                    "message": exc.message,
                    "details": exc.context,
                },
                headers={"Retry-After": str(retry_after)},
            )

        return await call_next(request)
