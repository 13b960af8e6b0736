"""Bounded retry with exponential backoff."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional, TypeVar

from ancestree.config import RetrySettings

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetriesExhausted(Exception):
    """Every attempt failed. `last_error` is the final attempt's error."""

    def __init__(self, attempts: int, last_error: BaseException):
        super().__init__(f"Failed after {attempts} attempt(s): {last_error}")
        self.attempts = attempts
        self.last_error = last_error


@dataclass
class RetryPolicy:
    """Retry up to `max_attempts` times, sleeping base_delay * factor**n between tries."""

    max_attempts: int = 2
    base_delay: float = 0.5
    factor: float = 2.0
    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep, repr=False)

    @classmethod
    def from_settings(cls, retry: RetrySettings, **kwargs) -> "RetryPolicy":
        return cls(
            max_attempts=retry.max_attempts,
            base_delay=retry.base_delay,
            factor=retry.factor,
            **kwargs,
        )

    def delay_for(self, attempt: int) -> float:
        """Delay after the `attempt`-th failure (0-based)."""
        return self.base_delay * (self.factor ** attempt)

    async def run(
        self,
        fn: Callable[[], Awaitable[T]],
        retry_on: tuple[type[BaseException], ...] = (Exception,),
        on_retry: Optional[Callable[[int, BaseException, float], None]] = None,
    ) -> T:
        """Await `fn()` until it succeeds or attempts run out."""
        attempts = max(1, self.max_attempts)
        last_error: Optional[BaseException] = None

        for attempt in range(attempts):
            try:
                return await fn()
            except retry_on as e:
                last_error = e
                if attempt < attempts - 1:
                    delay = self.delay_for(attempt)
                    if on_retry:
                        on_retry(attempt + 1, e, delay)
                    logger.info("Attempt %d/%d failed (%s); retrying in %.2fs", attempt + 1, attempts, e, delay)
                    await self.sleep(delay)

        raise RetriesExhausted(attempts, last_error)
