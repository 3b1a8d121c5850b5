"""Rate limiting middleware using a per-key sliding window."""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from drive_gmail_manager.config import get_rate_limits

logger = logging.getLogger(__name__)


def monotonic_ms() -> float:
    """Monotonic clock in milliseconds."""
    return time.monotonic() * 1000


class RateLimiter:
    """Sliding-window rate limiter keyed by logical operation.

    Each key (e.g. "search", "delete") keeps the timestamps of its recent
    admissions. A call is admitted while fewer than ``max_requests``
    timestamps fall inside the trailing ``window_ms``. Old timestamps are
    pruned lazily on each check; there are no background timers.

    The check-and-append runs under a lock, so admission stays atomic when
    blocking API calls are dispatched to worker threads.
    """

    def __init__(
        self,
        max_requests: int,
        window_ms: float,
        name: str = "default",
        clock: Callable[[], float] = monotonic_ms,
    ):
        """Initialize rate limiter.

        Args:
            max_requests: Maximum admissions per key within the window.
            window_ms: Window length in milliseconds.
            name: Label used in log messages.
            clock: Millisecond clock; injectable for tests.
        """
        if max_requests < 1 or window_ms <= 0:
            raise ValueError("max_requests and window_ms must be positive")

        self._max_requests = max_requests
        self._window_ms = window_ms
        self._name = name
        self._clock = clock
        self._requests: dict[str, list[float]] = {}
        self._lock = threading.Lock()

        logger.info(
            "RateLimiter %s initialized: %d requests per %d ms",
            name,
            max_requests,
            window_ms,
        )

    @property
    def max_requests(self) -> int:
        return self._max_requests

    @property
    def window_ms(self) -> float:
        return self._window_ms

    def _recent(self, key: str, now: float) -> list[float]:
        """Timestamps for key still inside the window (must hold lock)."""
        return [t for t in self._requests.get(key, []) if now - t < self._window_ms]

    def is_allowed(self, key: str) -> bool:
        """Admit one call for key if the window has room.

        Args:
            key: Logical operation name.

        Returns:
            True if admitted (the call is recorded), False otherwise (nothing
            is recorded).
        """
        with self._lock:
            now = self._clock()
            recent = self._recent(key, now)

            if len(recent) >= self._max_requests:
                self._requests[key] = recent
                logger.debug("Rate limit reached for %s:%s", self._name, key)
                return False

            recent.append(now)
            self._requests[key] = recent
            return True

    def remaining(self, key: str) -> int:
        """Get admissions left for key in the current window."""
        with self._lock:
            recent = self._recent(key, self._clock())
            return max(0, self._max_requests - len(recent))

    def time_until_reset(self, key: str) -> float:
        """Milliseconds until the oldest recorded admission leaves the window.

        Returns:
            0 if nothing is recorded for key.
        """
        with self._lock:
            timestamps = self._requests.get(key)
            if not timestamps:
                return 0.0
            return max(0.0, timestamps[0] + self._window_ms - self._clock())

    def reset(self, key: str | None = None) -> None:
        """Forget recorded admissions for one key, or for all keys."""
        with self._lock:
            if key is None:
                self._requests.clear()
                logger.debug("Reset all rate limit windows for %s", self._name)
            else:
                self._requests.pop(key, None)

    async def acquire(self, key: str, poll_interval: float = 0.1) -> None:
        """Wait until key is admitted.

        Used by bulk per-item work: instead of failing, the task sleeps until
        the oldest admission leaves the window and checks again. It never
        gives up.

        Args:
            key: Logical operation name.
            poll_interval: Seconds to wait when no reset time is known.
        """
        while not self.is_allowed(key):
            wait_ms = self.time_until_reset(key)
            delay = wait_ms / 1000 if wait_ms > 0 else poll_interval
            await asyncio.sleep(delay)

    def cleanup_stale(self, max_age_ms: float = 3_600_000) -> int:
        """Remove keys whose newest admission is older than max_age_ms.

        Args:
            max_age_ms: Age beyond which a key is dropped. Defaults to 1 hour.

        Returns:
            Number of keys removed.
        """
        removed = 0

        with self._lock:
            now = self._clock()
            stale_keys = [
                key
                for key, timestamps in self._requests.items()
                if not timestamps or now - timestamps[-1] > max_age_ms
            ]

            for key in stale_keys:
                del self._requests[key]
                removed += 1

        if removed > 0:
            logger.debug("Cleaned up %d stale %s rate limit keys", removed, self._name)

        return removed


@dataclass
class RateLimiters:
    """The limiters for each API family, constructed once and injected."""

    drive: RateLimiter
    gmail: RateLimiter
    bulk: RateLimiter
    _all: list[RateLimiter] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._all = [self.drive, self.gmail, self.bulk]

    @classmethod
    def from_config(cls, clock: Callable[[], float] = monotonic_ms) -> RateLimiters:
        """Build the Drive, Gmail and bulk limiters from configuration."""
        limits = get_rate_limits()
        return cls(
            drive=RateLimiter(*limits["drive"], name="drive", clock=clock),
            gmail=RateLimiter(*limits["gmail"], name="gmail", clock=clock),
            bulk=RateLimiter(*limits["bulk"], name="bulk", clock=clock),
        )

    def reset_all(self) -> None:
        for limiter in self._all:
            limiter.reset()

    def cleanup_stale(self) -> int:
        return sum(limiter.cleanup_stale() for limiter in self._all)


__all__ = ["RateLimiter", "RateLimiters", "monotonic_ms"]
