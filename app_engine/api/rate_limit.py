"""Per-client throttling for the event endpoint.

State lives in process memory, so each worker enforces its own limit.
"""

import math
import time
from collections import deque
from typing import Callable

from app_engine.config import settings


class RateLimiter:
    """Allow at most ``max_requests`` per key within ``window_seconds``."""

    def __init__(
        self,
        max_requests: int = 60,
        window_seconds: float = 60,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._hits: dict[str, deque[float]] = {}

    def _recent(self, key: str, now: float) -> deque[float]:
        hits = self._hits.setdefault(key, deque())
        while hits and hits[0] <= now - self.window_seconds:
            hits.popleft()
        return hits

    def is_allowed(self, key: str) -> bool:
        """Record a request for *key*; False once its allowance is spent."""
        now = self._clock()
        hits = self._recent(key, now)
        if len(hits) >= self.max_requests:
            return False
        hits.append(now)
        if len(self._hits) > 10_000:
            self._forget_idle(now)
        return True

    def retry_after(self, key: str) -> int:
        """Whole seconds until *key* may send again (0 when it already may)."""
        now = self._clock()
        hits = self._recent(key, now)
        if len(hits) < self.max_requests:
            return 0
        return max(1, math.ceil(hits[0] + self.window_seconds - now))

    def _forget_idle(self, now: float) -> None:
        for key in [k for k in self._hits if not self._recent(k, now)]:
            del self._hits[key]

    def reset(self) -> None:
        self._hits.clear()


event_limiter = RateLimiter(max_requests=settings.EVENTS_RATE_LIMIT, window_seconds=60)
