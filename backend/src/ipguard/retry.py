"""Bounded retry for async operations.

Shared by the collector's navigation loop and the screenshot upload.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Literal, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class RetryPolicy(BaseModel):
    """Configuration for retry behavior."""

    attempts: int = Field(default=3, ge=1, description="Total attempts, including the first")
    backoff: Literal["fixed", "exponential"] = "fixed"
    base_delay: float = Field(default=2.0, ge=0.0, description="Seconds")
    max_delay: float = 60.0
    exponential_base: float = 2.0

    def delay_for(self, attempt: int) -> float:
        """Delay after the given zero-based failed attempt."""
        if self.backoff == "fixed":
            return self.base_delay
        return min(self.base_delay * (self.exponential_base ** attempt), self.max_delay)


class RetryExhausted(Exception):
    """Every attempt failed. ``last_error`` holds the final exception."""

    def __init__(self, attempts: int, last_error: BaseException):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"All {attempts} attempts failed: {last_error}")


def _retry_everything(exc: BaseException) -> bool:
    return True


async def with_retry(
    func: Callable[[int], Awaitable[T]],
    policy: RetryPolicy | None = None,
    retry_on: Callable[[BaseException], bool] = _retry_everything,
    logger: logging.Logger | logging.LoggerAdapter | None = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> T:
    """Execute ``func`` with bounded retries.

    Args:
        func: Async callable receiving the zero-based attempt number
        policy: Attempt count and backoff strategy
        retry_on: Predicate deciding whether an exception is retryable;
            non-retryable exceptions propagate immediately
        logger: Optional logger for retry messages
        sleep: Awaitable used between attempts

    Returns:
        The first successful result

    Raises:
        RetryExhausted: If every attempt raised a retryable exception
    """
    if policy is None:
        policy = RetryPolicy()

    last_exception: BaseException | None = None

    for attempt in range(policy.attempts):
        try:
            return await func(attempt)
        except Exception as e:
            if not retry_on(e):
                raise
            last_exception = e

            if attempt < policy.attempts - 1:
                delay = policy.delay_for(attempt)
                if logger:
                    logger.warning(
                        f"Attempt {attempt + 1}/{policy.attempts} failed: {e}. "
                        f"Retrying in {delay:.1f}s"
                    )
                await sleep(delay)
            elif logger:
                logger.error(f"All {policy.attempts} attempts failed")

    raise RetryExhausted(policy.attempts, last_exception)
