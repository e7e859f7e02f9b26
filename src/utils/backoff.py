"""Exponential backoff with jitter for remote embedding and vector-store calls.

The delay after the *n*-th failed attempt is::

    delay = initial_delay * multiplier ** (n - 1)
    sleep = delay + uniform(0, delay / 2)

With the defaults (5 attempts, 0.5 s, x2) a call that never succeeds sleeps
roughly 0.5, 1, 2 and 4 seconds (plus jitter) before the fifth failure is
re-raised to the caller.  Errors explicitly flagged ``retryable=False``
(e.g. a 401 from the embeddings API) are re-raised on the spot.
"""

from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass, field
from typing import Awaitable, Callable, TypeVar

import structlog

from src.utils.errors import is_retryable

logger = structlog.get_logger(logger_name=__name__)

_T = TypeVar("_T")


@dataclass(frozen=True)
class RetryPolicy:
    """Retry parameters shared by every batch in an indexing run.

    Parameters
    ----------
    max_attempts:
        Total number of tries, including the first one.
    initial_delay:
        Base delay in seconds before the first retry.
    multiplier:
        Growth factor applied per additional failed attempt.
    sleep:
        Awaitable sleep function; tests substitute a no-op.
    rng:
        Random source for the jitter component.
    """

    max_attempts: int = 5
    initial_delay: float = 0.5
    multiplier: float = 2.0
    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep, compare=False)
    rng: random.Random = field(default_factory=random.Random, compare=False)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.initial_delay < 0:
            raise ValueError("initial_delay must be non-negative")

    def compute_delay(self, attempt: int) -> float:
        """Return the sleep (seconds) that follows failed attempt number *attempt*."""
        delay = self.initial_delay * self.multiplier ** (attempt - 1)
        return delay + self.rng.uniform(0, delay / 2)

    async def run(self, fn: Callable[[], Awaitable[_T]], *, operation: str = "remote_call") -> _T:
        """Await ``fn()`` until it succeeds or the policy gives up.

        The original exception propagates unchanged once ``max_attempts`` is
        reached or when it is flagged as non-retryable.
        """
        attempt = 0
        while True:
            try:
                return await fn()
            except Exception as exc:
                attempt += 1
                if attempt >= self.max_attempts or not is_retryable(exc):
                    logger.warning(
                        "retry_gave_up",
                        operation=operation,
                        attempts=attempt,
                        retryable=is_retryable(exc),
                        error=str(exc),
                    )
                    raise
                wait = self.compute_delay(attempt)
                logger.info(
                    "retry_scheduled",
                    operation=operation,
                    attempt=attempt,
                    max_attempts=self.max_attempts,
                    wait_s=round(wait, 3),
                    error=str(exc),
                )
                await self.sleep(wait)


async def with_exponential_backoff(
    fn: Callable[[], Awaitable[_T]],
    max_attempts: int = 5,
    initial_delay: float = 0.5,
    multiplier: float = 2.0,
) -> _T:
    """Functional shorthand for a one-off :class:`RetryPolicy` run."""
    policy = RetryPolicy(
        max_attempts=max_attempts,
        initial_delay=initial_delay,
        multiplier=multiplier,
    )
    return await policy.run(fn)
