"""
Tests for the fixed-window rate limiter.
"""

import pytest

from services.rate_limiter import FixedWindowRateLimiter


class FakeClock:
    def __init__(self, now: float = 1_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.mark.unit
class TestFixedWindowRateLimiter:
    """Test FixedWindowRateLimiter."""

    async def test_allows_up_to_limit(self) -> None:
        limiter = FixedWindowRateLimiter(clock=FakeClock())

        results = [await limiter.check_rate_limit("vote:ip:1.2.3.4", limit=5) for _ in range(6)]

        assert [r.allowed for r in results] == [True] * 5 + [False]
        assert [r.remaining for r in results] == [4, 3, 2, 1, 0, 0]

    async def test_window_resets(self) -> None:
        clock = FakeClock(now=600.0)
        limiter = FixedWindowRateLimiter(clock=clock)

        for _ in range(2):
            await limiter.check_rate_limit("k", limit=2, window_seconds=60)
        assert (await limiter.check_rate_limit("k", limit=2, window_seconds=60)).allowed is False

        clock.now = 660.0
        assert (await limiter.check_rate_limit("k", limit=2, window_seconds=60)).allowed is True

    async def test_retry_after_is_time_to_window_end(self) -> None:
        limiter = FixedWindowRateLimiter(clock=FakeClock(now=615.0))

        await limiter.check_rate_limit("k", limit=1, window_seconds=60)
        result = await limiter.check_rate_limit("k", limit=1, window_seconds=60)

        assert result.allowed is False
        assert result.retry_after == 45

    async def test_keys_are_independent(self) -> None:
        limiter = FixedWindowRateLimiter(clock=FakeClock())

        await limiter.check_rate_limit("vote:ip:1.1.1.1", limit=1)

        assert (await limiter.check_rate_limit("vote:ip:2.2.2.2", limit=1)).allowed is True
        assert (await limiter.check_rate_limit("comment:ip:1.1.1.1", limit=1)).allowed is True

    async def test_reset_clears_counters(self) -> None:
        limiter = FixedWindowRateLimiter(clock=FakeClock())
        await limiter.check_rate_limit("k", limit=1)

        limiter.reset()

        assert (await limiter.check_rate_limit("k", limit=1)).allowed is True
