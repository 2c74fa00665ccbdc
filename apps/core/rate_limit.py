"""Fixed-window attempt limiter keyed by identity string."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class _Window:
    count: int
    reset_time: int


class RateLimiter:
    """
    Allows at most ``max_attempts`` calls per key in a fixed window

    The counter resets at the window boundary rather than sliding, so up
    to twice ``max_attempts`` calls can land around a boundary. It is a UX
    throttle, authorization lives in the remote store.
    """

    def __init__(self, max_attempts: int, window_ms: int, clock: Callable[[], int] | None = None):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if window_ms <= 0:
            raise ValueError("window_ms must be positive")
        self.max_attempts = max_attempts
        self.window_ms = window_ms
        self.clock = clock or _now_ms
        self._windows: Dict[str, _Window] = {}

    def __call__(self, key: str) -> bool:
        now = self.clock()
        window = self._windows.get(key)

        if window is None or now > window.reset_time:
            self._windows[key] = _Window(count=1, reset_time=now + self.window_ms)
            return True

        if window.count >= self.max_attempts:
            logger.warning("Rate limit exceeded for %s", key)
            return False

        window.count += 1
        return True

    def attempts(self, key: str) -> int:
        window = self._windows.get(key)
        return window.count if window else 0


def create_rate_limiter(max_attempts: int, window_ms: int, clock: Callable[[], int] | None = None) -> RateLimiter:
    return RateLimiter(max_attempts, window_ms, clock=clock)
