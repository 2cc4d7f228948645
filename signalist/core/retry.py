"""Retry policy with exponential backoff for rate-limited upstream calls."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, Tuple, Type, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

RATE_LIMIT_STATUS = 429


def status_code_of(exc: BaseException) -> Optional[int]:
    code = getattr(exc, "status_code", None)
    if code is None:
        response = getattr(exc, "response", None)
        code = getattr(response, "status_code", None)
    try:
        return int(code) if code is not None else None
    except (TypeError, ValueError):
        return None


class RetryPolicy:
    """Bounded retry for a single outbound call.

    Usage:
        policy = RetryPolicy(max_attempts=3)
        data = await policy.run(lambda: client.fetch(...), label="/quote")

    A rate-limited failure (HTTP 429) waits ``base_delay * 2**attempt`` seconds
    (1s, 2s, 4s, ...). Any other retryable failure waits ``error_delay``.
    The last failure is re-raised once ``max_attempts`` is used up.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        error_delay: float = 0.5,
        max_delay: float = 30.0,
        retry_on: Tuple[Type[BaseException], ...] = (Exception,),
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.error_delay = error_delay
        self.max_delay = max_delay
        self.retry_on = retry_on
        self._sleep = sleep

    def delay_for(self, attempt: int, exc: BaseException) -> float:
        if status_code_of(exc) == RATE_LIMIT_STATUS:
            return min(self.base_delay * (2**attempt), self.max_delay)
        return self.error_delay

    async def run(self, operation: Callable[[], Awaitable[T]], label: str = "request") -> T:
        for attempt in range(self.max_attempts):
            try:
                return await operation()
            except self.retry_on as exc:
                if attempt == self.max_attempts - 1:
                    logger.warning("Retries exhausted for %s after %d attempts: %s", label, self.max_attempts, exc)
                    raise
                delay = self.delay_for(attempt, exc)
                logger.info(
                    "event=retry label=%s attempt=%d status=%s delay=%.2f",
                    label,
                    attempt + 1,
                    status_code_of(exc),
                    delay,
                )
                await self._sleep(delay)
        raise RuntimeError("Max retries reached")
