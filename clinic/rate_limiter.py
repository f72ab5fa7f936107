"""
In-memory fixed-window rate limiting for the API

Each client IP gets `limit` requests per `window_seconds`. Counters live in
process memory, so with several workers every worker counts on its own.
"""

import logging
import math
import time
from threading import Lock
from typing import Callable, Optional

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

logger = logging.getLogger(__name__)

# Expired windows are swept at most this often
CLEANUP_INTERVAL_SECONDS = 60

RATE_LIMIT_MESSAGE = "Too many requests, please try again later."


class FixedWindowCounter:
    """Per-key request counters that reset every `window_seconds`"""

    def __init__(self, limit: int, window_seconds: int, clock: Callable[[], float] = time.monotonic):
        self.limit = limit
        self.window_seconds = window_seconds
        self.clock = clock
        # {key: {"count": int, "reset_time": float}}
        self.entries: dict[str, dict] = {}
        self.lock = Lock()
        self.last_cleanup = clock()

    def cleanup(self, now: float) -> None:
        if now - self.last_cleanup < CLEANUP_INTERVAL_SECONDS:
            return
        expired = [k for k, v in self.entries.items() if now >= v["reset_time"]]
        for k in expired:
            del self.entries[k]
        if expired:
            logger.debug(f"Cleaned up {len(expired)} expired rate limit entries")
        self.last_cleanup = now

    def hit(self, key: str) -> tuple[bool, int, int]:
        """
        Count one request for `key`.

        Returns (is_allowed, current_count, seconds_until_reset). Rejected
        requests are not counted.
        """
        now = self.clock()
        with self.lock:
            self.cleanup(now)

            entry = self.entries.get(key)
            if entry is None or now >= entry["reset_time"]:
                entry = {"count": 0, "reset_time": now + self.window_seconds}
                self.entries[key] = entry

            is_allowed = entry["count"] < self.limit
            if is_allowed:
                entry["count"] += 1

            ttl = max(0, math.ceil(entry["reset_time"] - now))
            return is_allowed, entry["count"], ttl


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Reject requests under `prefix` with 429 once a client IP exceeds its window"""

    def __init__(
        self,
        app,
        limit: int,
        window_seconds: int,
        prefix: str = "/api",
        counter: Optional[FixedWindowCounter] = None,
    ):
        super().__init__(app)
        self.prefix = prefix
        self.counter = counter or FixedWindowCounter(limit, window_seconds)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if not request.url.path.startswith(self.prefix) or request.method == "OPTIONS":
            return await call_next(request)

        key = client_ip(request)
        is_allowed, current_count, ttl = self.counter.hit(key)
        if not is_allowed:
            logger.warning(
                f"Rate limit exceeded for {key} - {current_count}/{self.counter.limit} "
                f"requests in {self.counter.window_seconds}s"
            )
            return JSONResponse(
                status_code=429,
                content={"success": False, "message": RATE_LIMIT_MESSAGE, "retryAfter": ttl},
                headers={"Retry-After": str(ttl)},
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(self.counter.limit)
        response.headers["X-RateLimit-Remaining"] = str(self.counter.limit - current_count)
        return response
