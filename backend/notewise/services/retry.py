"""
Notewise Backend — Retry Executor
===================================

What:  Runs an async operation, retrying only transient generation failures.
How:   tenacity's AsyncRetrying with exponential backoff (base, 2×base, 4×base…,
       no jitter), stopping after `max_attempts`. Whether an exception is
       worth another attempt is decided by the error classifier alone.
Who:   GeminiService wraps every network call in `execute()`.

Example with the defaults (3 attempts, 1000ms base):
    attempt 1 fails (timeout)   → sleep 1.0s
    attempt 2 fails (429)       → sleep 2.0s
    attempt 3 fails             → original exception propagates
    A 401 or a safety block on attempt 1 propagates immediately.

The executor has no timeout of its own; the transport timeout bounds each
attempt. `sleep` is injectable so tests can record delays without waiting.
"""

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from notewise.services.error_classifier import is_retryable_error

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryExecutor:
    """Retry policy for calls to the generation API."""

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay_ms: int = 1000,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.base_delay_ms = base_delay_ms
        self._sleep = sleep

    def _retrying(self) -> AsyncRetrying:
        # A fresh controller per call; AsyncRetrying keeps per-run statistics
        return AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.base_delay_ms / 1000),
            retry=retry_if_exception(is_retryable_error),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            sleep=self._sleep,
            reraise=True,
        )

    async def execute(self, operation: Callable[[], Awaitable[T]]) -> T:
        """
        Await `operation()` until it succeeds, fails non-retryably, or runs
        out of attempts. The last exception is re-raised unchanged.

        `operation` may be any zero-argument callable returning an awaitable,
        including a plain lambda around a coroutine function.
        """
        async for attempt in self._retrying():
            with attempt:
                return await operation()

        raise RuntimeError("Retry loop exited without returning")
