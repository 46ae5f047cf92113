"""Bounded retry with fixed or exponential backoff.

With a base delay of 3 seconds:

- fixed rate (default): 3s before every retry
- exponential: 3s, 6s, 12s, 24s, ...
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import TYPE_CHECKING, TypeVar

from github_app_client.config import RetryPolicy
from github_app_client.logging import get_logger

from .exceptions import NON_RETRYABLE_ERRORS

if TYPE_CHECKING:
    from loguru import Logger

logger = get_logger(__name__)

T = TypeVar("T")


class RetryEngine:
    """Runs an operation until it succeeds or the attempt budget is spent.

    The exception from the final attempt is re-raised unchanged so callers
    can branch on the original error type.
    """

    def __init__(
        self,
        policy: RetryPolicy | None = None,
        *,
        sleep: Callable[[float], None] = time.sleep,
        log: Logger | None = None,
    ) -> None:
        """Initialize the retry engine.

        Args:
            policy: Attempt budget and delays (defaults to RetryPolicy())
            sleep: Blocking sleep function
            log: Logger (defaults to the module logger)
        """
        self._policy = policy or RetryPolicy()
        self._sleep = sleep
        self._log = log or logger

    @property
    def policy(self) -> RetryPolicy:
        """The retry policy in use."""
        return self._policy

    def delay_for(self, attempt: int, base_delay: float | None = None) -> float:
        """Seconds to wait after the given failed attempt (1-indexed)."""
        base = self._policy.base_delay if base_delay is None else base_delay
        if self._policy.exponential:
            return base * (2 ** (attempt - 1))
        return base

    def execute(
        self,
        operation: Callable[[], T],
        *,
        attempts: int | None = None,
        base_delay: float | None = None,
    ) -> T:
        """Run ``operation`` with retries.

        Args:
            operation: Zero-argument callable performing the request
            attempts: Total attempts (defaults to the policy's max_attempts)
            base_delay: Base delay in seconds (defaults to the policy's)

        Returns:
            The result of the first successful attempt

        Raises:
            Exception: The last error once all attempts have failed, or a
                configuration/credential/authentication error immediately
        """
        max_attempts = max(1, attempts if attempts is not None else self._policy.max_attempts)

        for attempt in range(1, max_attempts + 1):
            try:
                return operation()
            except NON_RETRYABLE_ERRORS:
                raise
            except Exception as e:
                if attempt >= max_attempts:
                    self._log.debug(
                        "[retry #{}] {}: {} - max retries exceeded",
                        attempt,
                        type(e).__name__,
                        e,
                    )
                    raise

                delay = self.delay_for(attempt, base_delay)
                self._log.debug(
                    "[retry #{}] {}: {} - sleeping {}s before retry",
                    attempt,
                    type(e).__name__,
                    e,
                    delay,
                )
                self._sleep(delay)

        raise AssertionError("unreachable")  # pragma: no cover
