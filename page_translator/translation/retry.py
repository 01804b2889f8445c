"""
Retry policy for translation backend calls.

Sandi Metz Principles:
- Single Responsibility: Decide whether and when a backend call is retried
- Small methods: Classification, delay and loop kept apart
- Dependency Injection: Policy, classifier and sleep injected
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, TypeVar

import anthropic
import openai

from page_translator.config import AppConfig
from page_translator.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

# Request timeout, lock conflict and rate limit; every 5xx is transient too
TRANSIENT_STATUS_CODES = frozenset({408, 409, 429})

_CONNECTION_ERRORS = (openai.APIConnectionError, anthropic.APIConnectionError)
_STATUS_ERRORS = (openai.APIStatusError, anthropic.APIStatusError)


def is_transient(error: BaseException) -> bool:
    """
    Check if a backend SDK error is worth another attempt.

    Connection failures and timeouts are transient. HTTP errors are
    transient for 408, 409, 429 and any 5xx. Other statuses fail the same
    way on every attempt.

    Args:
        error: Exception raised by a backend call

    Returns:
        True if the call should be retried
    """
    if isinstance(error, _CONNECTION_ERRORS):
        return True
    if isinstance(error, _STATUS_ERRORS):
        status = error.status_code
        return status in TRANSIENT_STATUS_CODES or status >= 500
    return False


def retry_after_seconds(error: BaseException) -> Optional[float]:
    """
    Read the server's requested wait from a rate-limit style response.

    Args:
        error: Exception raised by a backend call

    Returns:
        Seconds to wait, None if the response carries no usable hint
    """
    response = getattr(error, "response", None)
    headers = getattr(response, "headers", None)
    if not headers:
        return None

    millis = _parse_seconds(headers.get("retry-after-ms"))
    if millis is not None:
        return millis / 1000

    # HTTP-date values are not parsed
    return _parse_seconds(headers.get("retry-after"))


def _parse_seconds(value: Optional[str]) -> Optional[float]:
    if value is None:
        return None
    try:
        seconds = float(value)
    except ValueError:
        return None
    return seconds if seconds >= 0 else None


@dataclass
class RetryConfig:
    """Backoff settings for backend calls."""

    max_attempts: int = 3
    initial_delay: float = 1.0
    max_delay: float = 60.0
    exponential_base: float = 2.0

    @classmethod
    def from_config(cls, settings: AppConfig) -> "RetryConfig":
        """
        Build retry settings from application config.

        Args:
            settings: Application config

        Returns:
            Retry config
        """
        return cls(
            max_attempts=settings.backend_max_attempts,
            initial_delay=settings.backend_retry_initial_delay,
            max_delay=settings.backend_retry_max_delay,
        )


class RetryHandler:
    """
    Retries transient backend failures with exponential backoff.

    A Retry-After hint from the provider lengthens the wait but never past
    max_delay.
    """

    def __init__(
        self,
        config: Optional[RetryConfig] = None,
        is_retryable: Callable[[BaseException], bool] = is_transient,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """
        Initialize retry handler.

        Args:
            config: Retry configuration (uses defaults if None)
            is_retryable: Classifier for raised exceptions
            sleep: Async sleep function
        """
        self._config = config or RetryConfig()
        self._is_retryable = is_retryable
        self._sleep = sleep

    async def execute(self, func: Callable[[], Awaitable[T]]) -> T:
        """
        Execute backend call, retrying transient failures.

        Args:
            func: Async function to execute

        Returns:
            Function result

        Raises:
            Exception: Last error once attempts run out, or any permanent error
        """
        attempt = 1
        while True:
            try:
                return await func()
            except Exception as e:
                if not self._is_retryable(e):
                    raise
                if attempt >= self._config.max_attempts:
                    logger.error(
                        "Backend call failed after retries",
                        attempts=attempt,
                        error=str(e),
                    )
                    raise

                delay = self.delay_for(attempt, e)
                logger.warning(
                    "Transient backend failure, retrying",
                    attempt=attempt,
                    delay=round(delay, 2),
                    status=getattr(e, "status_code", None),
                    error=str(e),
                )
                await self._sleep(delay)
                attempt += 1

    def delay_for(self, attempt: int, error: Optional[BaseException] = None) -> float:
        """
        Get wait before the next attempt.

        Args:
            attempt: Attempt that just failed (1-indexed)
            error: Failure of that attempt, consulted for a Retry-After hint

        Returns:
            Delay in seconds
        """
        delay = self.calculate_delay(attempt)
        hinted = retry_after_seconds(error) if error is not None else None
        if hinted is not None:
            delay = max(delay, hinted)
        return min(delay, self._config.max_delay)

    def calculate_delay(self, attempt: int) -> float:
        """
        Calculate exponential backoff for attempt.

        Args:
            attempt: Current attempt number (1-indexed)

        Returns:
            Delay in seconds
        """
        delay = self._config.initial_delay * (
            self._config.exponential_base ** (attempt - 1)
        )
        return min(delay, self._config.max_delay)
