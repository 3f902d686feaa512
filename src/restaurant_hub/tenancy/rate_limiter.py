"""In-memory sliding window rate limiter for public tenant endpoints."""

import time
from collections import defaultdict, deque
from threading import Lock


class InMemoryRateLimiter:
    """Sliding window rate limiter keyed by tenant.

    Thread-safe via Lock. Single-instance only: each process counts its
    own requests, so N instances allow up to N times the limit.
    """

    def __init__(self, window_seconds: int = 60) -> None:
        self._window = window_seconds
        self._hits: dict[str, deque[float]] = defaultdict(deque)
        self._lock = Lock()

    def check(self, key: str, limit: int) -> tuple[bool, int]:
        """Record a hit for ``key`` if it fits within ``limit``.

        Args:
            key: Rate limit key, e.g. "tenant:acme".
            limit: Max requests per window.

        Returns:
            (allowed, retry_after_seconds). Denied hits are not recorded.
        """
        now = time.monotonic()
        cutoff = now - self._window

        with self._lock:
            hits = self._hits[key]
            while hits and hits[0] <= cutoff:
                hits.popleft()

            if len(hits) >= limit:
                retry_after = int(hits[0] - cutoff) + 1
                return False, max(retry_after, 1)

            hits.append(now)
            return True, 0

    def cleanup(self) -> int:
        """Drop keys whose whole window has expired.

        Returns:
            Number of keys removed.
        """
        cutoff = time.monotonic() - self._window

        with self._lock:
            stale = [k for k, hits in self._hits.items() if not hits or hits[-1] <= cutoff]
            for key in stale:
                del self._hits[key]

        return len(stale)
