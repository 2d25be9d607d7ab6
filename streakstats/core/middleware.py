from collections import deque
from collections.abc import Awaitable
from collections.abc import Callable
from threading import Lock
from time import monotonic

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response


RATE_LIMITED_PREFIX = "/streak/"


class SlidingWindowLimiter:
    """Per-key request counter over a sliding time window.

    Only keys seen within the last window are kept: a key's timestamps are
    evicted as they age out, and a key with none left is forgotten.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = monotonic,
    ) -> None:
        self.max_requests = max(1, max_requests)
        self.window_seconds = max(1, window_seconds)
        self._clock = clock
        self._hits: dict[str, deque[float]] = {}
        self._last_sweep = clock()
        self._lock = Lock()

    def __len__(self) -> int:
        return len(self._hits)

    def acquire(self, key: str) -> int | None:
        """Record a request for `key`.

        Returns None when allowed, otherwise the seconds until a slot frees.
        """

        now = self._clock()
        cutoff = now - self.window_seconds

        with self._lock:
            if now - self._last_sweep >= self.window_seconds:
                self._sweep(cutoff)
                self._last_sweep = now

            hits = self._hits.get(key)
            if hits is not None:
                while hits and hits[0] <= cutoff:
                    hits.popleft()
                if not hits:
                    del self._hits[key]
                    hits = None

            if hits is not None and len(hits) >= self.max_requests:
                return max(1, int(self.window_seconds - (now - hits[0])))

            self._hits.setdefault(key, deque()).append(now)
            return None

    def _sweep(self, cutoff: float) -> None:
        # Newest timestamp is last; a key whose newest hit expired is idle.
        idle = [key for key, hits in self._hits.items() if hits[-1] <= cutoff]
        for key in idle:
            del self._hits[key]


class StreakRateLimitMiddleware(BaseHTTPMiddleware):
    """Limit GET /streak/* per client, since each one fans out to GitHub."""

    def __init__(
        self, app, requests_per_window: int = 30, window_seconds: int = 60
    ) -> None:
        super().__init__(app)
        self.limiter = SlidingWindowLimiter(requests_per_window, window_seconds)

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        if request.method != "GET" or not request.url.path.startswith(
            RATE_LIMITED_PREFIX
        ):
            return await call_next(request)

        retry_after = self.limiter.acquire(client_key(request))
        if retry_after is not None:
            return JSONResponse(
                status_code=429,
                content={"detail": "Too Many Requests"},
                headers={"Retry-After": str(retry_after)},
            )

        return await call_next(request)


def client_key(request: Request) -> str:
    """Client address, honouring the first X-Forwarded-For hop."""

    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip() or "unknown"

    if request.client and request.client.host:
        return request.client.host

    return "unknown"
