"""
Retry Policy - Injectable retry/backoff around provider calls.

Usage:
    policy = RetryPolicy(max_attempts=3)
    data = await policy.call(client.fetch_page, page=1)
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional

import aiohttp

from providers.exceptions import FetchError, RateLimitError


logger = logging.getLogger(__name__)


BackoffFn = Callable[[int, BaseException], float]


def default_backoff(base: float = 1.0) -> BackoffFn:
    """
    Rate limits back off exponentially (``base * 2**attempt``), honouring
    ``Retry-After`` when it is shorter. Other failures back off linearly
    (``base * (attempt + 1)``).
    """
    def backoff(attempt: int, error: BaseException) -> float:
        if isinstance(error, RateLimitError):
            delay = base * (2 ** attempt)
            if error.retry_after_seconds is not None:
                delay = min(delay, float(error.retry_after_seconds))
            return delay
        return base * (attempt + 1)

    return backoff


def is_retryable(error: BaseException) -> bool:
    """4xx other than 429 are permanent."""
    if isinstance(error, FetchError) and error.is_client_error:
        return False
    return True


@dataclass
class RetryPolicy:
    """
    Retry configuration for one provider.

    Attributes:
        max_attempts: Total attempts including the first
        backoff: ``(attempt, error) -> seconds`` to wait before the next try
        retry_on: Exception types that may be retried
        sleep: Awaitable sleep, replaceable in tests
    """
    max_attempts: int = 3
    backoff: BackoffFn = field(default_factory=default_backoff)
    retry_on: tuple[type[BaseException], ...] = (
        FetchError,
        RateLimitError,
        aiohttp.ClientError,
        asyncio.TimeoutError,
    )
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")

    @classmethod
    def from_config(cls, max_retries: int, backoff_base: float) -> "RetryPolicy":
        return cls(max_attempts=max_retries, backoff=default_backoff(backoff_base))

    @classmethod
    def no_retry(cls) -> "RetryPolicy":
        return cls(max_attempts=1)

    async def call(
        self,
        fn: Callable[..., Awaitable[Any]],
        *args: Any,
        **kwargs: Any,
    ) -> Any:
        """
        Await ``fn(*args, **kwargs)`` with retries.

        Raises:
            The last error once attempts are exhausted, or immediately
            for errors that are not retryable.
        """
        last_error: Optional[BaseException] = None

        for attempt in range(self.max_attempts):
            try:
                return await fn(*args, **kwargs)
            except self.retry_on as e:
                last_error = e
                if not is_retryable(e) or attempt == self.max_attempts - 1:
                    raise

                delay = self.backoff(attempt, e)
                logger.warning(
                    f"[RetryPolicy] Attempt {attempt + 1}/{self.max_attempts} failed: {e}. "
                    f"Retrying in {delay:.1f}s"
                )
                await self.sleep(delay)

        # Unreachable: the loop either returns or raises
        raise RuntimeError(f"Retry loop exited without result: {last_error}")
