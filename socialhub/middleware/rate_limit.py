"""
SocialHub Backend: Rate Limiting Middleware
=============================================

What:  Per-IP sliding window limiter (default 100 requests / 15 minutes).
How:   Each client IP keeps a deque of request timestamps. Timestamps older
       than the window are dropped from the left; a request arriving when the
       deque is full is answered with 429 and a Retry-After header.

The 429 body uses the standard error envelope. It is built here rather than
raised, because exceptions raised inside BaseHTTPMiddleware do not reach the
application's exception handlers.

State lives in the middleware instance: one window per app, per process.
"""

import logging
import time
from collections import deque
from typing import Deque, Dict, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from socialhub.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)


class RateLimitMiddleware(BaseHTTPMiddleware):
    EXCLUDED_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}

    # Idle IPs are purged every this many recorded requests
    SWEEP_EVERY = 1000

    def __init__(self, app, max_requests: int = 100, window_seconds: int = 900):
        super().__init__(app)
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._hits: Dict[str, Deque[float]] = {}
        self._recorded = 0

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        retry_after = self._hit(client_ip, time.monotonic())
        if retry_after is not None:
            logger.warning(
                "Rate limit exceeded for %s: %d requests in %ds",
                client_ip,
                self.max_requests,
                self.window_seconds,
            )
            return JSONResponse(
                status_code=429,
                content={
                    "success": False,
                    "error": "Too many requests, please try again later",
                    "request_id": request_id_var.get(""),
                },
                headers={"Retry-After": str(retry_after)},
            )

        return await call_next(request)

    def _hit(self, client_ip: str, now: float) -> Optional[int]:
        """Records a request; returns seconds to wait if it is over the limit."""
        hits = self._hits.setdefault(client_ip, deque())
        window_start = now - self.window_seconds
        while hits and hits[0] <= window_start:
            hits.popleft()

        if len(hits) >= self.max_requests:
            return int(hits[0] + self.window_seconds - now) + 1

        hits.append(now)
        self._recorded += 1
        if self._recorded % self.SWEEP_EVERY == 0:
            self._sweep(window_start)
        return None

    def _sweep(self, window_start: float) -> None:
        idle = [ip for ip, hits in self._hits.items() if not hits or hits[-1] <= window_start]
        for ip in idle:
            del self._hits[ip]
        if idle:
            logger.debug("Dropped rate-limit state for %d idle clients", len(idle))
