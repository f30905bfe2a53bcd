"""Fixed-window rate limiting for outbound LLM calls."""

import time
from dataclasses import dataclass
from typing import Callable


@dataclass
class _Window:
    count: int
    reset_at: float


class FixedWindowRateLimiter:
    """Allow at most ``max_requests`` per ``window_seconds`` for each key.

    Keys are caller-chosen (session id, user id). State lives in memory,
    which is fine for the single-process deployment.
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
        self._windows: dict[str, _Window] = {}
        self._next_sweep = clock() + window_seconds

    def hit(self, key: str) -> bool:
        """Record a request for ``key``.

        Returns:
            True if the request is allowed, False if the key is over budget.
        """
        now = self._clock()
        if now >= self._next_sweep:
            self._sweep(now)
        window = self._windows.get(key)

        if window is None or now >= window.reset_at:
            self._windows[key] = _Window(count=1, reset_at=now + self.window_seconds)
            return True

        if window.count >= self.max_requests:
            return False

        window.count += 1
        return True

    def _sweep(self, now: float) -> None:
        """Drop expired windows; runs at most once per window length."""
        for key in [k for k, w in self._windows.items() if w.reset_at <= now]:
            del self._windows[key]
        self._next_sweep = now + self.window_seconds

    def remaining(self, key: str) -> int:
        window = self._windows.get(key)
        if window is None or self._clock() >= window.reset_at:
            return self.max_requests
        return max(self.max_requests - window.count, 0)

    def reset(self, key: str | None = None) -> None:
        if key is None:
            self._windows.clear()
        else:
            self._windows.pop(key, None)
