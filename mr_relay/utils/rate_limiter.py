"""
Rate limiter utility for request admission.
"""
import asyncio
import time
from typing import Callable, Dict, Optional, Tuple


class RateLimiter:
    """
    Fixed-window rate limiter keyed by client.

    Admits at most ``max_requests`` hits per key within each window. The
    window for a key starts at its first hit and resets once it has elapsed.

    Example:
        limiter = RateLimiter(max_requests=120, window_seconds=60.0)
        retry_after = await limiter.hit(client_ip)
        if retry_after is not None:
            # reject the request
    """

    def __init__(
        self,
        max_requests: int = 120,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize rate limiter.

        Args:
            max_requests: Requests admitted per key and window; 0 disables limiting
            window_seconds: Window length in seconds
            clock: Monotonic time source, replaceable in tests
        """
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.clock = clock
        self._windows: Dict[str, Tuple[float, int]] = {}
        self._last_prune = clock()
        self._lock = asyncio.Lock()

    @property
    def enabled(self) -> bool:
        return self.max_requests > 0

    async def hit(self, key: str) -> Optional[float]:
        """
        Record a request for ``key``.

        Returns None when the request is admitted, otherwise the number of
        seconds until the key's window resets.
        """
        if not self.enabled:
            return None

        async with self._lock:
            now = self.clock()
            self._prune(now)

            start, count = self._windows.get(key, (now, 0))
            if now - start >= self.window_seconds:
                start, count = now, 0

            if count >= self.max_requests:
                return max(self.window_seconds - (now - start), 0.0)

            self._windows[key] = (start, count + 1)
            return None

    def _prune(self, now: float) -> None:
        if now - self._last_prune < self.window_seconds:
            return
        self._windows = {
            key: window
            for key, window in self._windows.items()
            if now - window[0] < self.window_seconds
        }
        self._last_prune = now

    def reset(self):
        """Reset the rate limiter (clear all counters)."""
        self._windows.clear()
