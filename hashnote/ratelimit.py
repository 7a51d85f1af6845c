"""
Sliding-window rate limiter, keyed by client identifier.

Each identifier owns a window: the admission timestamps that fall inside
the trailing ``window_seconds``. Older timestamps are evicted lazily, on
the next access for that identifier.

Limitations:
    - State is process-local (``RateLimitState``). Replicas each count
      separately; a shared limit needs an external atomic store.
    - Identifiers are never evicted, so memory grows with the number of
      distinct clients seen during the process lifetime.
"""

from __future__ import annotations

import threading
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Callable


@dataclass
class RateLimitState:
    """Per-identifier admission windows, guarded by one lock."""

    windows: dict[str, deque[float]] = field(default_factory=dict)
    lock: threading.Lock = field(default_factory=threading.Lock)


class RateLimiter:
    """Admit at most ``max_requests`` per identifier per window.

    Args:
        max_requests: Admissions allowed inside one window.
        window_seconds: Window length in seconds.
        clock: Returns the current time in seconds. Inject for tests.
        state: Window storage. A fresh one is created if omitted.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        *,
        clock: Callable[[], float] | None = None,
        state: RateLimitState | None = None,
    ) -> None:
        if max_requests < 1:
            raise ValueError(f"max_requests must be >= 1, got: {max_requests}")
        if window_seconds <= 0:
            raise ValueError(f"window_seconds must be > 0, got: {window_seconds}")
        self._max_requests = max_requests
        self._window_seconds = window_seconds
        self._clock = clock or time.monotonic
        self._state = state if state is not None else RateLimitState()

    @property
    def max_requests(self) -> int:
        return self._max_requests

    @property
    def window_seconds(self) -> float:
        return self._window_seconds

    def is_allowed(self, identifier: str) -> bool:
        """Record and admit a request, or reject it if the window is full."""
        now = self._clock()
        with self._state.lock:
            window = self._evict(identifier, now)
            if len(window) >= self._max_requests:
                return False
            window.append(now)
            return True

    def remaining(self, identifier: str) -> int:
        """Admissions still available in the current window (never negative)."""
        now = self._clock()
        with self._state.lock:
            window = self._evict(identifier, now)
            return max(0, self._max_requests - len(window))

    def retry_after(self, identifier: str) -> float:
        """Seconds until the next admission is possible; 0 if it is now."""
        now = self._clock()
        with self._state.lock:
            window = self._evict(identifier, now)
            if len(window) < self._max_requests:
                return 0.0
            return max(0.0, window[0] + self._window_seconds - now)

    def _evict(self, identifier: str, now: float) -> deque[float]:
        # caller holds the lock
        window = self._state.windows.setdefault(identifier, deque())
        while window and now - window[0] >= self._window_seconds:
            window.popleft()
        return window
