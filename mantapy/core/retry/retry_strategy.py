"""Retry strategies using Strategy Pattern."""
import time
import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Optional

from ..exceptions import TransportError


@dataclass(frozen=True)
class RetryContext:
    """
    Outcome of one physical attempt.

    ``attempt`` is 0-based. Exactly one of ``error`` and ``response`` is
    set: ``error`` for a connection-level failure, ``response`` when the
    service answered.
    """
    attempt: int
    max_retries: int
    error: Optional[BaseException] = None
    response: Optional[Any] = None

    @property
    def status(self) -> Optional[int]:
        if self.response is None:
            return None
        return self.response.status


class RetryPolicy(ABC):
    """Abstract retry strategy."""

    @abstractmethod
    def should_retry(self, context: RetryContext) -> bool:
        """Determines if the request should be attempted again."""
        pass

    def delay(self, context: RetryContext) -> float:
        """Seconds to wait before the next attempt."""
        return 0.0

    def wait(self, context: RetryContext):
        """Waits before retry."""
        seconds = self.delay(context)
        if seconds > 0:
            time.sleep(seconds)

    async def wait_async(self, context: RetryContext):
        """Waits before retry (async)."""
        seconds = self.delay(context)
        if seconds > 0:
            await asyncio.sleep(seconds)


class DefaultRetryPolicy(RetryPolicy):
    """
    Retries connection failures and 5xx responses.

    Rules, in order: an attempt past ``max_retries`` is never retried; a
    connection-level failure is retried; a response with status >= 500 is
    retried; anything else is surfaced. The backoff hook only controls the
    delay, never the decision.
    """

    def __init__(self, backoff: Optional[Callable[[int], float]] = None):
        self._backoff = backoff

    def should_retry(self, context: RetryContext) -> bool:
        if context.attempt > context.max_retries:
            return False

        if isinstance(context.error, TransportError):
            return True

        status = context.status
        if status is not None and status >= 500:
            return True

        return False

    def delay(self, context: RetryContext) -> float:
        if self._backoff is None:
            return 0.0
        return max(0.0, float(self._backoff(context.attempt)))


def exponential_backoff(
    base_delay: float = 0.25,
    max_delay: float = 16.0,
    exponential_base: float = 2.0
) -> Callable[[int], float]:
    """Build a capped exponential backoff hook."""
    def calculate_delay(attempt: int) -> float:
        delay = base_delay * (exponential_base ** attempt)
        return min(delay, max_delay)

    return calculate_delay
