"""
In-process fixed-window rate limiting.

Counters live in this process only; each server process limits its own
traffic. Windows are aligned to multiples of window_seconds since the epoch.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Callable


@dataclass
class RateLimitResult:
    """Outcome of a rate limit check."""

    allowed: bool
    limit: int
    remaining: int
    retry_after: int


class FixedWindowRateLimiter:
    """Counts hits per key per fixed time window."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._windows: dict[tuple[str, int], tuple[int, int]] = {}
        self._lock = asyncio.Lock()

    async def check_rate_limit(self, key: str, limit: int, window_seconds: int = 60) -> RateLimitResult:
        """
        Count one hit against a key.

        Args:
            key: Rate limit key (e.g. "vote:ip:203.0.113.7")
            limit: Maximum hits allowed per window
            window_seconds: Window length in seconds

        Returns:
            RateLimitResult; allowed is False once the window's limit is used up
        """
        now = self._clock()
        window = int(now // window_seconds)
        window_end = (window + 1) * window_seconds

        entry = (key, window_seconds)
        async with self._lock:
            # Anything left after eviction belongs to the current window
            self._evict_expired(now)
            count = self._windows.get(entry, (0, window))[0] + 1
            self._windows[entry] = (count, window)

        retry_after = max(1, int(window_end - now + 0.999))
        if count > limit:
            return RateLimitResult(allowed=False, limit=limit, remaining=0, retry_after=retry_after)
        return RateLimitResult(allowed=True, limit=limit, remaining=limit - count, retry_after=retry_after)

    def _evict_expired(self, now: float) -> None:
        expired = [
            entry
            for entry, (_, window) in self._windows.items()
            if (window + 1) * entry[1] <= now
        ]
        for entry in expired:
            del self._windows[entry]

    def reset(self) -> None:
        """Forget every counter."""
        self._windows.clear()


rate_limiter = FixedWindowRateLimiter()
