"""Retry orchestration for a single logical request.

`RetryController` drives attempts with tenacity:

- attempt 0 is the initial try; at most `max_retries` retries follow;
- transport failures and HTTP status errors are retried, anything else
  (serialization errors, cancellation, hook bugs) ends the call at once;
- before retry `n` the `before_retry` callback runs, then the controller
  waits `backoff * n` seconds (1s, 2s, 3s, ... by default);
- once the budget is spent the last error is re-raised unchanged.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import tenacity
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_incrementing,
)

from .exceptions import HTTPStatusError, RequestError, TransportError
from .log_config import logger

T = TypeVar("T")

RETRYABLE_ERRORS: tuple[type[RequestError], ...] = (TransportError, HTTPStatusError)
"""Error types that trigger another attempt while retries remain."""

Sleep = Callable[[float], Awaitable[Any]]
BeforeRetry = Callable[[RequestError, int], Awaitable[None]]


class RetryController:
    """Runs an attempt function until it succeeds or the retry budget is spent.

    A controller tracks the attempts of one call; create one per request.

    Attributes:
        max_retries: Number of retries after the initial attempt.
        backoff: Linear backoff step in seconds.
        attempts: Number of attempts made by the last `run()`.
    """

    def __init__(
        self,
        max_retries: int = 0,
        backoff: float = 1.0,
        *,
        sleep: Sleep | None = None,
    ):
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        self.max_retries = max_retries
        self.backoff = backoff
        self._sleep: Sleep = sleep or asyncio.sleep
        self.attempts = 0

    def delay_for(self, attempt_number: int) -> float:
        """Seconds to wait before retry `attempt_number` (1-based)."""
        return self.backoff * attempt_number

    def _build_retrying(self, before_retry: BeforeRetry | None) -> AsyncRetrying:
        async def _before_sleep(retry_state: tenacity.RetryCallState) -> None:
            if not retry_state.outcome:  # Should not happen
                return
            exc = retry_state.outcome.exception()
            # The attempt that just failed is also the number of the upcoming retry
            attempt_number = retry_state.attempt_number
            sleep_time = (
                getattr(retry_state.next_action, "sleep", 0)
                if retry_state.next_action
                else 0
            )
            logger.info(
                f"Retrying request in {sleep_time:.2f} seconds "
                f"(retry {attempt_number}/{self.max_retries}) "
                f"due to: {type(exc).__name__} - {exc}"
            )
            if before_retry is not None:
                assert isinstance(exc, RequestError)
                await before_retry(exc, attempt_number)

        return AsyncRetrying(
            stop=stop_after_attempt(self.max_retries + 1),  # +1 for initial attempt
            wait=wait_incrementing(start=self.backoff, increment=self.backoff),
            retry=retry_if_exception_type(RETRYABLE_ERRORS),
            reraise=True,  # Reraise the last error once retries are exhausted
            sleep=self._sleep,
            before_sleep=_before_sleep,
        )

    async def run(
        self,
        attempt: Callable[[], Awaitable[T]],
        before_retry: BeforeRetry | None = None,
    ) -> T:
        """Run `attempt` with retries.

        Args:
            attempt: Coroutine function performing one attempt.
            before_retry: Awaited with the failing error and the upcoming retry
                number, before the backoff wait.

        Returns:
            The result of the first successful attempt.

        Raises:
            RequestError: The last error once retries are exhausted, or a
                non-retryable error immediately.
            asyncio.CancelledError: If the calling task is cancelled.
        """
        retrying = self._build_retrying(before_retry)
        try:
            return await retrying(attempt)
        except asyncio.CancelledError:
            logger.debug("Request cancelled; no further attempts will be made.")
            raise
        except RETRYABLE_ERRORS as e:
            if self.max_retries:
                logger.error(f"Request failed after {self.max_retries + 1} attempts: {e}")
            raise
        finally:
            self.attempts = retrying.statistics.get("attempt_number", 0)
