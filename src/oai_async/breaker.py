from __future__ import annotations

import random
from collections.abc import Callable

from .errors import CircuitBreakerOpenError
from .metrics import circuit_breaker_events_total

JITTER_CAP_SECONDS = 0.25


def backoff_delay(retry_index: int, *, initial: float, maximum: float) -> float:
    """Exponential delay before retry number ``retry_index`` (0 = first retry), plus up to 10% jitter."""
    delay = min(maximum, initial * 2**retry_index)
    if delay <= 0:
        return 0.0
    return delay + random.uniform(0.0, min(JITTER_CAP_SECONDS, delay / 10))


class CircuitBreaker:
    """
    Consecutive-failure breaker shared by every call on one session.

    After ``threshold`` failures in a row, calls are refused for
    ``reset_seconds``; the next call after that goes through and either
    closes the breaker or reopens it. ``threshold <= 0`` disables it.
    """

    def __init__(self, threshold: int, reset_seconds: float, clock: Callable[[], float]):
        self.threshold = max(0, int(threshold))
        self.reset_seconds = max(0.0, float(reset_seconds))
        self._clock = clock
        self.failures = 0
        self.open_until: float | None = None

    @property
    def enabled(self) -> bool:
        return self.threshold > 0

    def retry_after(self) -> int | None:
        """Whole seconds until calls are allowed again, or None when closed."""
        if self.open_until is None:
            return None
        left = self.open_until - self._clock()
        return int(left) + 1 if left > 0 else None

    def check(self) -> None:
        if not self.enabled:
            return
        wait = self.retry_after()
        if wait is not None:
            circuit_breaker_events_total.labels(event="short_circuit").inc()
            raise CircuitBreakerOpenError(retry_after_seconds=wait)

    def record_success(self) -> None:
        self.failures = 0
        self.open_until = None

    def record_failure(self) -> None:
        if not self.enabled:
            return
        self.failures += 1
        if self.failures >= self.threshold and self.reset_seconds > 0:
            self.open_until = self._clock() + self.reset_seconds
            circuit_breaker_events_total.labels(event="open").inc()
