"""
PetNest Backend — Rate Limiting Middleware
============================================

What:  Per-IP sliding window rate limiter.
How:   Keeps the timestamps of each IP's recent requests in memory; a request
       is refused with 429 once the IP already has RATE_LIMIT_REQUESTS
       requests inside the last RATE_LIMIT_WINDOW seconds.

State is per process. Behind several workers each worker enforces its own
budget; a shared store (Redis) would be needed for a global limit.
"""

import logging
import time
from collections import defaultdict
from typing import Dict, List

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from petnest.config import settings
from petnest.exceptions import RateLimitExceededError
from petnest.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)

CLEANUP_EVERY = 1000


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    In-memory sliding window rate limiter.

    Excluded paths: /health and the API docs.

    The 429 body is built here from RateLimitExceededError rather than by
    raising it: middleware sits outside FastAPI's exception handlers.
    """

    EXCLUDED_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}

    def __init__(self, app, **kwargs):
        super().__init__(app, **kwargs)
        self._requests: Dict[str, List[float]] = defaultdict(list)
        self._seen = 0

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        now = time.time()
        window = settings.rate_limit_window
        window_start = now - window

        recent = [ts for ts in self._requests[client_ip] if ts > window_start]
        self._requests[client_ip] = recent

        if len(recent) >= settings.rate_limit_requests:
            retry_after = int(recent[0] + window - now) + 1
            logger.warning(
                "Rate limit exceeded for IP %s: %d requests in %ds window",
                client_ip,
                len(recent),
                window,
            )
            return self._reject(RateLimitExceededError(retry_after=retry_after))

        recent.append(now)

        self._seen += 1
        if self._seen % CLEANUP_EVERY == 0:
            self._cleanup_inactive_ips(window_start)

        return await call_next(request)

    def _reject(self, exc: RateLimitExceededError) -> JSONResponse:
        return JSONResponse(
            status_code=429,
            content={
                "error": "rate_limit_exceeded",
                "message": exc.message,
                "details": exc.context,
                "request_id": request_id_var.get(""),
            },
            headers={"Retry-After": str(exc.retry_after)},
        )

    def _cleanup_inactive_ips(self, window_start: float) -> None:
        """Drop IPs with no requests inside the current window."""
        inactive = [
            ip for ip, stamps in self._requests.items()
            if not stamps or stamps[-1] < window_start
        ]
        for ip in inactive:
            del self._requests[ip]
        if inactive:
            logger.debug("Cleaned up %d inactive IP entries", len(inactive))
