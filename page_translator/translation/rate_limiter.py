"""
Rate limiting for translation backends.

Sandi Metz Principles:
- Single Responsibility: Manage request quotas
- Small methods: Each method < 10 lines
- Dependency Injection: Configuration, clock and sleep injected
"""

import asyncio
from collections import deque
from dataclasses import dataclass
from datetime import date, datetime, timezone
from time import time
from typing import Any, Awaitable, Callable, Deque, Optional

from page_translator.exceptions import BackendFailure
from page_translator.utils.logger import get_logger

logger = get_logger(__name__)

WINDOW_SECONDS = 60.0


@dataclass
class RateLimitConfig:
    """Rate limit configuration."""

    requests_per_minute: int
    requests_per_day: Optional[int] = None


class RateLimiter:
    """
    Sliding window rate limiter for API calls.

    The per-minute limit waits for a free slot. The daily quota cannot be
    waited out, so an exhausted quota fails fast.
    """

    def __init__(
        self,
        config: RateLimitConfig,
        clock: Callable[[], float] = time,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """
        Initialize rate limiter.

        Args:
            config: Rate limit configuration
            clock: Returns epoch seconds
            sleep: Async sleep function
        """
        self._config = config
        self._clock = clock
        self._sleep = sleep
        self._requests: Deque[float] = deque()
        self._day: Optional[date] = None
        self._day_count = 0
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        """
        Acquire permission to make request.

        Blocks until the per-minute limit allows the request.

        Raises:
            BackendFailure: If the daily quota is used up
        """
        async with self._lock:
            self._check_daily_quota()
            await self._wait_if_needed()
            self._record_request()

    def _check_daily_quota(self) -> None:
        """Fail if today's quota is exhausted."""
        self._roll_day()
        limit = self._config.requests_per_day
        if limit is not None and self._day_count >= limit:
            logger.warning("Daily translation quota exhausted", limit=limit)
            raise BackendFailure(f"Daily request quota of {limit} exhausted")

    def _roll_day(self) -> None:
        """Reset daily counter when the UTC date changes."""
        today = datetime.fromtimestamp(self._clock(), tz=timezone.utc).date()
        if today != self._day:
            self._day = today
            self._day_count = 0

    async def _wait_if_needed(self) -> None:
        """Wait if rate limit is exceeded."""
        self._cleanup_old_requests()

        if len(self._requests) >= self._config.requests_per_minute:
            wait_time = self._calculate_wait_time()
            logger.debug(f"Rate limit reached, waiting {wait_time:.2f}s")
            await self._sleep(wait_time)
            self._cleanup_old_requests()

    def _cleanup_old_requests(self) -> None:
        """Remove requests older than the window."""
        cutoff = self._clock() - WINDOW_SECONDS
        while self._requests and self._requests[0] <= cutoff:
            self._requests.popleft()

    def _calculate_wait_time(self) -> float:
        """
        Calculate time to wait before next request.

        Returns:
            Wait time in seconds
        """
        if not self._requests:
            return 0.0
        elapsed = self._clock() - self._requests[0]
        return max(0.0, WINDOW_SECONDS - elapsed)

    def _record_request(self) -> None:
        """Record current request timestamp."""
        self._requests.append(self._clock())
        self._day_count += 1

    def get_remaining_requests(self) -> int:
        """
        Get remaining requests in current minute window.

        Returns:
            Number of remaining requests
        """
        self._cleanup_old_requests()
        return max(0, self._config.requests_per_minute - len(self._requests))

    def get_remaining_daily_requests(self) -> Optional[int]:
        """
        Get remaining requests today.

        Returns:
            Remaining requests, None if there is no daily quota
        """
        if self._config.requests_per_day is None:
            return None
        self._roll_day()
        return max(0, self._config.requests_per_day - self._day_count)
