"""
Request rate limiting and security headers for the API.
"""

import time
from typing import Callable

RATE_LIMIT_MESSAGE = "Too many requests from this IP, please try again later."

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "X-DNS-Prefetch-Control": "off",
    "Referrer-Policy": "no-referrer",
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
}

# Expired windows are swept once this many clients are tracked
_PRUNE_THRESHOLD = 10_000


class RateLimiter:
    """
    Fixed-window request counter per client.

    Each client gets ``max_requests`` per window; the window starts with the
    client's first request. ``max_requests`` of 0 disables limiting.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: dict[str, tuple[float, int]] = {}

    @property
    def enabled(self) -> bool:
        return self.max_requests > 0

    def hit(self, client: str) -> float | None:
        """Count one request. Returns seconds until the window resets when over the limit."""
        now = self._clock()
        started, count = self._windows.get(client, (now, 0))
        if now - started >= self.window_seconds:
            started, count = now, 0

        if len(self._windows) >= _PRUNE_THRESHOLD:
            self._prune(now)

        count += 1
        self._windows[client] = (started, count)
        if count > self.max_requests:
            return self.window_seconds - (now - started)
        return None

    def _prune(self, now: float) -> None:
        self._windows = {
            client: window
            for client, window in self._windows.items()
            if now - window[0] < self.window_seconds
        }

    def __len__(self) -> int:
        return len(self._windows)
