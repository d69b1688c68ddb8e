"""Retry settings for flaky I/O such as oracle calls."""
from __future__ import annotations

import logging
from dataclasses import dataclass
import typing as t

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retry with exponential backoff and optional jitter."""
    max_attempts: int = 3
    base_delay: float = 0.5
    max_delay: float = 8.0
    jitter: bool = True

    @classmethod
    def none(cls) -> "RetryPolicy":
        """Single attempt, no retries."""
        return cls(max_attempts=1)

    def retrying(
        self, retry_on: tuple[type[BaseException], ...] = (Exception,)
    ) -> AsyncRetrying:
        """Tenacity controller for one retried operation.

        Only exceptions in ``retry_on`` are retried; the last one is re-raised
        as is once attempts run out.
        """
        return AsyncRetrying(
            stop=stop_after_attempt(max(self.max_attempts, 1)),
            wait=wait_exponential_jitter(
                initial=self.base_delay,
                max=self.max_delay,
                jitter=self.base_delay if self.jitter else 0,
            ),
            retry=retry_if_exception_type(retry_on),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
