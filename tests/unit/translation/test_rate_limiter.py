"""
Tests for rate limiter.
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from page_translator.exceptions import BackendFailure
from page_translator.translation.rate_limiter import RateLimitConfig, RateLimiter

START = datetime(2024, 6, 1, 23, 59, tzinfo=timezone.utc).timestamp()


class FakeTime:
    def __init__(self, now: float = START):
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestRateLimiter:
    """Test rate limiter functionality."""

    @pytest.fixture
    def clock(self) -> FakeTime:
        return FakeTime()

    @pytest.fixture
    def sleep(self, clock) -> AsyncMock:
        async def advance(seconds: float) -> None:
            clock.now += seconds

        return AsyncMock(side_effect=advance)

    @pytest.mark.asyncio
    async def test_should_allow_requests_under_limit(self, clock, sleep) -> None:
        limiter = RateLimiter(RateLimitConfig(requests_per_minute=5), clock, sleep)

        for _ in range(3):
            await limiter.acquire()

        assert limiter.get_remaining_requests() == 2
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_should_wait_when_minute_limit_reached(self, clock, sleep) -> None:
        limiter = RateLimiter(RateLimitConfig(requests_per_minute=2), clock, sleep)

        await limiter.acquire()
        clock.now += 10
        await limiter.acquire()
        await limiter.acquire()

        sleep.assert_awaited_once_with(50.0)

    @pytest.mark.asyncio
    async def test_should_free_slots_after_window(self, clock, sleep) -> None:
        limiter = RateLimiter(RateLimitConfig(requests_per_minute=1), clock, sleep)

        await limiter.acquire()
        clock.now += 61

        assert limiter.get_remaining_requests() == 1

    @pytest.mark.asyncio
    async def test_should_fail_fast_when_daily_quota_exhausted(self, clock, sleep) -> None:
        limiter = RateLimiter(
            RateLimitConfig(requests_per_minute=100, requests_per_day=2), clock, sleep
        )

        await limiter.acquire()
        await limiter.acquire()

        with pytest.raises(BackendFailure, match="Daily request quota"):
            await limiter.acquire()
        assert limiter.get_remaining_daily_requests() == 0

    @pytest.mark.asyncio
    async def test_should_reset_daily_quota_on_new_day(self, clock, sleep) -> None:
        limiter = RateLimiter(
            RateLimitConfig(requests_per_minute=100, requests_per_day=1), clock, sleep
        )

        await limiter.acquire()
        clock.now += 120  # past midnight UTC

        await limiter.acquire()
        assert limiter.get_remaining_daily_requests() == 0

    def test_should_report_no_daily_quota(self) -> None:
        limiter = RateLimiter(RateLimitConfig(requests_per_minute=10))
        assert limiter.get_remaining_daily_requests() is None
