"""Per-user sliding window rate limiting."""

import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

from macro_journal.errors import RateLimitExceededError


class RateLimiter(Protocol):
    """Rate limiter interface keyed by user identity."""

    def acquire(self, user_key: str) -> None:
        """Record a request or raise RateLimitExceededError."""


@dataclass
class SlidingWindowRateLimiter(RateLimiter):
    """In-memory sliding window limiter for a single process.

    Users with no request inside the window are dropped at most once per
    window, so memory tracks active users only.
    """

    max_requests: int = 20
    window_seconds: float = 60.0
    clock: Callable[[], float] = time.monotonic
    _requests: dict[str, deque[float]] = field(default_factory=dict, repr=False)
    _last_cleanup: float | None = field(default=None, repr=False)

    def acquire(self, user_key: str) -> None:
        """Record a request for the user if the window has room."""
        now = self.clock()
        last = self._last_cleanup
        if last is None or now - last >= self.window_seconds:
            self._remove_expired(now)
        window = self._requests.setdefault(user_key, deque())
        cutoff = now - self.window_seconds
        while window and window[0] <= cutoff:
            window.popleft()
        if len(window) >= self.max_requests:
            retry_after = window[0] + self.window_seconds - now
            raise RateLimitExceededError(user_key, max(retry_after, 0.0))
        window.append(now)

    def remaining(self, user_key: str) -> int:
        """Return how many requests the user may still make in this window."""
        window = self._requests.get(user_key)
        if not window:
            return self.max_requests
        cutoff = self.clock() - self.window_seconds
        active = sum(1 for stamp in window if stamp > cutoff)
        return max(self.max_requests - active, 0)

    def cleanup_expired(self) -> int:
        """Drop users without requests in the current window; return how many."""
        return self._remove_expired(self.clock())

    def tracked_users(self) -> int:
        """Return the number of users currently holding window state."""
        return len(self._requests)

    def _remove_expired(self, now: float) -> int:
        cutoff = now - self.window_seconds
        expired = [
            key
            for key, window in self._requests.items()
            if not window or window[-1] <= cutoff
        ]
        for key in expired:
            del self._requests[key]
        self._last_cleanup = now
        return len(expired)
