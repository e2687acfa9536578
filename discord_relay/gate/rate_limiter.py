"""In-memory rolling window rate limiter for the relay endpoints."""

from __future__ import annotations

import threading
import time


class RelayRateLimiter:
    """Rolling window rate limiter keyed by client identity.

    Default: 60 requests per 60 seconds per client. A quota of 0 disables
    limiting.
    """

    def __init__(
        self,
        max_requests: int = 60,
        window_seconds: int = 60,
    ) -> None:
        self._max_requests = max_requests
        self._window_seconds = window_seconds
        self._counters: dict[str, list[float]] = {}
        self._lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return self._max_requests > 0

    def check(self, client_id: str) -> bool:
        """Record a request and return True if it is within the quota."""
        if not self.enabled:
            return True

        with self._lock:
            now = time.time()
            cutoff = now - self._window_seconds
            recent = [t for t in self._counters.get(client_id, []) if t > cutoff]

            if len(recent) >= self._max_requests:
                self._counters[client_id] = recent
                return False

            recent.append(now)
            self._counters[client_id] = recent
            self._prune(cutoff)
            return True

    def _prune(self, cutoff: float) -> None:
        """Drop clients whose whole history fell out of the window."""
        stale = [key for key, stamps in self._counters.items() if stamps[-1] <= cutoff]
        for key in stale:
            del self._counters[key]
