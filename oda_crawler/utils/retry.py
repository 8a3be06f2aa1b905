from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import TYPE_CHECKING, Awaitable, Callable, Optional

from ..errors import (
    ClientError,
    ExhaustedRetriesError,
    FetchError,
    NotFoundError,
    RateLimitError,
    TransientFetchError,
)
from .http import ClientFailure, FetchOutcome, RateLimited, Success

if TYPE_CHECKING:
    from ..config import CrawlConfig

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


@dataclass
class RetryPolicy:
    """
    Bounded exponential backoff: attempt n (1-based) that fails transiently is
    followed by a wait of base_delay * factor ** (n - 1) seconds.
    """
    max_attempts: int = 5
    base_delay: float = 1.0
    factor: float = 2.0
    max_retry_time: float = 60.0
    jitter: bool = False

    @classmethod
    def from_config(cls, cfg: CrawlConfig) -> "RetryPolicy":
        return cls(
            max_attempts=cfg.max_attempts,
            base_delay=cfg.retry_base_delay,
            factor=cfg.retry_factor,
            max_retry_time=cfg.max_retry_time,
            jitter=cfg.retry_jitter,
        )

    def backoff(self, attempt: int) -> float:
        delay = self.base_delay * self.factor ** (attempt - 1)
        if self.jitter:
            delay *= random.uniform(1.0, 2.0)
        return delay

    def rate_limit_delay(self, retry_after: float, attempt: int) -> float:
        """
        Server-directed wait in seconds. The attempt number squared (in ms) is
        taken off the Retry-After value; the result is never negative.
        """
        return max(0.0, retry_after * 1000.0 - attempt ** 2) / 1000.0


@dataclass
class RetryState:
    attempt: int = 0
    total_wait: float = 0.0
    last_outcome: Optional[FetchOutcome] = None


def _as_error(outcome: FetchOutcome) -> FetchError:
    if isinstance(outcome, RateLimited):
        return RateLimitError(outcome.url, outcome.retry_after)
    return TransientFetchError(outcome.url, getattr(outcome, "reason", "fetch failed"))


async def run_with_retry(
    operation: Callable[[], Awaitable[FetchOutcome]],
    policy: RetryPolicy,
    *,
    sleep: Sleep = asyncio.sleep,
) -> Success:
    """
    Run ``operation`` until it yields Success, a terminal client failure, or the
    attempt/wait budget runs out.

    Raises NotFoundError/ClientError immediately on 4xx (except 429) and
    ExhaustedRetriesError, chained to the last RateLimitError or
    TransientFetchError, when no attempts remain.
    """
    state = RetryState()
    while True:
        state.attempt += 1
        outcome = await operation()
        state.last_outcome = outcome

        if isinstance(outcome, Success):
            return outcome
        if isinstance(outcome, ClientFailure):
            if outcome.status == 404:
                raise NotFoundError(outcome.url)
            raise ClientError(outcome.url, outcome.status)

        if state.attempt >= policy.max_attempts:
            raise ExhaustedRetriesError(outcome.url, state.attempt, outcome) from _as_error(outcome)

        if isinstance(outcome, RateLimited) and outcome.retry_after is not None:
            delay = policy.rate_limit_delay(outcome.retry_after, state.attempt)
        else:
            delay = policy.backoff(state.attempt)

        if state.total_wait + delay > policy.max_retry_time:
            logger.debug("Retry window of %.1fs exceeded for %s", policy.max_retry_time, outcome.url)
            raise ExhaustedRetriesError(outcome.url, state.attempt, outcome) from _as_error(outcome)

        logger.debug(
            "Attempt %s/%s for %s failed (%s); retrying in %.3fs",
            state.attempt, policy.max_attempts, outcome.url, type(outcome).__name__, delay,
        )
        await sleep(delay)
        state.total_wait += delay
