"""Per-key sliding-window rate limiter with a bounded wait."""

import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable

from commitcraft.providers.exceptions import ConfigurationError, RateLimitExceeded


@dataclass
class RateLimitResult:
    allowed: bool
    reason: str
    remaining: int
    waited_s: float


class SlidingWindowRateLimiter:
    """Allows at most max_requests per window_seconds for each key.

    acquire() blocks on a condition variable until a slot frees up, but
    never longer than its max wait. When the earliest possible slot lies
    beyond that bound it fails immediately instead of sleeping first.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        max_wait_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_requests <= 0 or window_seconds <= 0 or max_wait_seconds < 0:
            raise ConfigurationError(
                "Rate limit requires max_requests > 0, window_seconds > 0 and max_wait_seconds >= 0"
            )
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.max_wait_seconds = max_wait_seconds
        self._clock = clock
        self._cond = threading.Condition()
        self._windows: dict[str, deque[float]] = {}

    def _prune(self, window: deque[float], now: float) -> None:
        while window and now - window[0] >= self.window_seconds:
            window.popleft()

    def acquire(self, key: str, max_wait: float | None = None) -> RateLimitResult:
        """Take one slot for key.

        Args:
            key: Bucket key, normally the model id.
            max_wait: Override for the configured wait bound, in seconds.

        Returns:
            RateLimitResult describing the granted slot.

        Raises:
            RateLimitExceeded: If no slot can be granted within the bound.
        """
        budget = self.max_wait_seconds if max_wait is None else max_wait
        started = self._clock()
        deadline = started + budget
        waited = False
        with self._cond:
            while True:
                now = self._clock()
                window = self._windows.setdefault(key, deque())
                self._prune(window, now)
                if len(window) < self.max_requests:
                    window.append(now)
                    return RateLimitResult(
                        allowed=True,
                        reason="waited" if waited else "ok",
                        remaining=self.max_requests - len(window),
                        waited_s=now - started,
                    )
                wait_needed = window[0] + self.window_seconds - now
                if now + wait_needed > deadline:
                    raise RateLimitExceeded(
                        f"Rate limit for '{key}' cannot clear within {budget:.2f}s "
                        f"(next slot in {wait_needed:.2f}s)",
                        model_id=key,
                        retry_after=wait_needed,
                    )
                self._cond.wait(timeout=wait_needed)
                waited = True

    def remaining(self, key: str) -> int:
        with self._cond:
            window = self._windows.get(key)
            if window is None:
                return self.max_requests
            self._prune(window, self._clock())
            return self.max_requests - len(window)

    def reset(self, key: str | None = None) -> None:
        with self._cond:
            if key is None:
                self._windows.clear()
            else:
                self._windows.pop(key, None)
            self._cond.notify_all()
