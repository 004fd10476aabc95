"""
webmetrics/middleware/rate_limit.py — Per-IP sliding-window limiter for probe requests.
A dashboard polling every 5s makes 12 requests/min; RATE_LIMIT_PER_MINUTE defaults to 60.
"""
import time
from collections import defaultdict, deque
from typing import Callable, Dict, Optional
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from ..config import get_settings

WINDOW = 60
LIMITED_PATHS = {"/monitor-website"}


class SlidingWindow:
    """Timestamps of recent hits per client, trimmed to the last WINDOW seconds."""

    def __init__(self, window: float = WINDOW):
        self.window = window
        self.hits: Dict[str, deque] = defaultdict(deque)

    def hit(self, key: str, limit: int, now: Optional[float] = None) -> Optional[int]:
        """Record a hit; return seconds to wait if ``key`` is over ``limit``, else None."""
        now = time.monotonic() if now is None else now
        q = self.hits[key]
        while q and now - q[0] > self.window:
            q.popleft()
        if len(q) >= limit:
            return int(self.window - (now - q[0])) + 1
        q.append(now)
        return None


_window = SlidingWindow()


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.method != "POST" or request.url.path not in LIMITED_PATHS:
            return await call_next(request)

        limit = get_settings().rate_limit_per_minute
        retry = _window.hit(client_ip(request), limit)
        if retry is not None:
            return JSONResponse(
                status_code=429,
                content={"error": f"Rate limit exceeded. Max {limit}/min per IP.", "retry_after_seconds": retry},
                headers={"Retry-After": str(retry)},
            )
        return await call_next(request)
