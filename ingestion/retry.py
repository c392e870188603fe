"""
Bounded exponential-backoff retry around one fallible async call.

Used by every adapter around its network calls. Never wrap transform
logic with it: a malformed record must fail fast.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar
from core.config import settings
from core.exceptions import NonRetryableError, RateLimitError
import logging

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """
    Attributes:
        attempts: Total number of tries, including the first one
        initial_delay: Seconds to wait before the second try
        multiplier: Factor applied to the delay after every failure
        max_delay: Upper bound on any single wait
    """
    attempts: int = 3
    initial_delay: float = 1.0
    multiplier: float = 2.0
    max_delay: float = 30.0

    def __post_init__(self):
        if self.attempts < 1:
            raise ValueError("attempts must be >= 1")
        if self.initial_delay < 0 or self.max_delay < 0:
            raise ValueError("delays must be >= 0")

    def delay_for(self, attempt: int) -> float:
        """Wait after the given failed attempt (1-based)."""
        delay = self.initial_delay * (self.multiplier ** (attempt - 1))
        return min(delay, self.max_delay)

    @classmethod
    def from_settings(cls, overrides: Optional[Dict[str, Any]] = None) -> "RetryPolicy":
        """
        Build from global settings, letting a source's config override
        retryAttempts / retryInitialDelay / retryMultiplier / retryMaxDelay.
        """
        overrides = overrides or {}
        return cls(
            attempts=int(overrides.get("retryAttempts", settings.RETRY_ATTEMPTS)),
            initial_delay=float(overrides.get("retryInitialDelay", settings.RETRY_INITIAL_DELAY)),
            multiplier=float(overrides.get("retryMultiplier", settings.RETRY_BACKOFF_MULTIPLIER)),
            max_delay=float(overrides.get("retryMaxDelay", settings.RETRY_MAX_DELAY)),
        )


async def with_retry(
    fn: Callable[[], Awaitable[T]],
    policy: Optional[RetryPolicy] = None,
    description: str = "operation",
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> T:
    """
    Call fn until it succeeds or the policy is exhausted.

    Args:
        fn: Zero-argument coroutine factory; called once per attempt
        policy: Backoff policy (defaults to RetryPolicy())
        description: Label used in log lines
        sleep: Awaitable sleep, injectable for tests

    Returns:
        Whatever fn returns

    Raises:
        The last exception raised by fn, unchanged. NonRetryableError
        subclasses are rethrown on the attempt that raised them.
    """
    policy = policy or RetryPolicy()
    last_exception: Optional[BaseException] = None

    for attempt in range(1, policy.attempts + 1):
        try:
            return await fn()

        except NonRetryableError:
            raise

        except Exception as e:
            last_exception = e

            if attempt >= policy.attempts:
                break

            delay = policy.delay_for(attempt)
            if isinstance(e, RateLimitError) and e.retry_after:
                delay = min(max(delay, float(e.retry_after)), policy.max_delay)

            logger.warning(
                f"{description} failed (attempt {attempt}/{policy.attempts}): "
                f"{type(e).__name__}: {e}. Retrying in {delay:.1f}s"
            )
            await sleep(delay)

    logger.error(f"{description} failed after {policy.attempts} attempts")
    raise last_exception
