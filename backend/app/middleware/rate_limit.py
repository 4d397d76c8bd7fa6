"""
PadPress Backend — Rate Limiting Middleware
============================================

What:  Per-IP sliding window limiter that sheds load with the "busy" answer.
How:   Keeps recent request timestamps per client address in memory. Once a
       client has `max_requests` inside the last `window` seconds, further
       requests get `error_service_unavailable` (503, plain text,
       Retry-After) until the oldest timestamp leaves the window.

    timestamps(ip) = [t for t in timestamps(ip) if t > now - window]
    len(timestamps(ip)) >= max_requests  →  503 "I'm busy right now, try again later."

Single-process only: state lives in this worker's memory.
"""

import logging
import time
from collections import defaultdict
from typing import Dict, List, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.config import settings
from app.responder import error_service_unavailable

logger = logging.getLogger(__name__)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Configuration:
        max_requests: requests allowed per window (default: RATE_LIMIT_REQUESTS)
        window:       window length in seconds (default: RATE_LIMIT_WINDOW)

    Health and API docs are never limited.
    """

    EXCLUDED_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}

    def __init__(
        self,
        app,
        max_requests: Optional[int] = None,
        window: Optional[int] = None,
    ):
        super().__init__(app)
        self.max_requests = max_requests if max_requests is not None else settings.rate_limit_requests
        self.window = window if window is not None else settings.rate_limit_window
        self._requests: Dict[str, List[float]] = defaultdict(list)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        client_ip = (
            getattr(request.client, "host", "unknown")
            if request.client
            else "unknown"
        )

        now = time.time()
        window_start = now - self.window

        self._requests[client_ip] = [
            ts for ts in self._requests[client_ip] if ts > window_start
        ]

        if len(self._requests[client_ip]) >= self.max_requests:
            oldest = self._requests[client_ip][0]
            retry_after = int(oldest + self.window - now) + 1

            logger.warning(
                "Rate limit exceeded for IP %s: %d requests in %ds window",
                client_ip,
                len(self._requests[client_ip]),
                self.window,
            )
            return error_service_unavailable(retry_after)

        self._requests[client_ip].append(now)

        # Drop idle clients every 1000th recorded request
        if sum(len(v) for v in self._requests.values()) % 1000 == 0:
            self._cleanup_inactive_ips(window_start)

        return await call_next(request)

    def _cleanup_inactive_ips(self, window_start: float) -> None:
        inactive_ips = [
            ip for ip, timestamps in self._requests.items()
            if not timestamps or max(timestamps) < window_start
        ]
        for ip in inactive_ips:
            del self._requests[ip]

        if inactive_ips:
            logger.debug("Cleaned up %d inactive IP entries", len(inactive_ips))
