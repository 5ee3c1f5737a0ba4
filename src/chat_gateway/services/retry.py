"""Retry loop for upstream calls.

The loop is an explicit state machine:

    ATTEMPTING --success--------------------------> SUCCEEDED
    ATTEMPTING --fatal----------------------------> FAILED_FATAL
    ATTEMPTING --retryable, attempts left---------> BACKOFF --sleep--> ATTEMPTING
    ATTEMPTING --retryable, final attempt---------> FAILED_EXHAUSTED

Every attempt is bounded by a hard timeout; a timeout cancels the
in-flight call and is classified as retryable.
"""

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from chat_gateway.config import Settings, settings
from chat_gateway.entities import AttemptOutcome, RetryState, UpstreamAttempt
from chat_gateway.errors import RetryableUpstreamError, UpstreamError, UpstreamUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Retry parameters, all durations in seconds.

    Attributes:
        max_retries: Attempts allowed after the first one
        base_delay: Backoff base, doubled per attempt
        max_jitter: Upper bound (exclusive) of the random delay added to each backoff
        timeout: Hard limit for a single attempt
    """

    max_retries: int = 3
    base_delay: float = 0.3
    max_jitter: float = 0.15
    timeout: float = 10.0

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must not be negative")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")

    @classmethod
    def from_settings(cls, config: Settings | None = None) -> "RetryPolicy":
        """Build a policy from the millisecond values in Settings."""
        config = config or settings
        return cls(
            max_retries=config.upstream_max_retries,
            base_delay=config.retry_base_delay_ms / 1000,
            max_jitter=config.retry_max_jitter_ms / 1000,
            timeout=config.upstream_timeout_ms / 1000,
        )

    @property
    def total_attempts(self) -> int:
        return self.max_retries + 1

    def backoff_delay(self, attempt: int, rng: random.Random) -> float:
        """Delay before the attempt following ``attempt``: base * 2^attempt + jitter."""
        jitter = rng.uniform(0, self.max_jitter) if self.max_jitter > 0 else 0.0
        return self.base_delay * 2**attempt + jitter


@dataclass
class RetryResult(Generic[T]):
    """Value produced by the successful attempt plus the attempt history."""

    value: T
    attempts: list[UpstreamAttempt] = field(default_factory=list)


class RetryingCaller:
    """Runs an async operation under a RetryPolicy.

    The operation must raise RetryableUpstreamError for transient failures and
    an UpstreamError subclass for fatal ones. Anything else propagates untouched.

    Example:
        ```python
        caller = RetryingCaller(RetryPolicy(max_retries=3))
        result = await caller.call(lambda: provider.chat("hello"))
        result.value  # decoded body
        ```
    """

    def __init__(
        self,
        policy: RetryPolicy | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        rng: random.Random | None = None,
    ) -> None:
        """Initialize the retrying caller.

        Args:
            policy: Retry parameters. Defaults to RetryPolicy.from_settings().
            sleep: Coroutine used for backoff (tests inject a recorder).
            rng: Random source for jitter.
        """
        self._policy = policy or RetryPolicy.from_settings()
        self._sleep = sleep
        self._rng = rng or random.Random()

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    async def call(self, operation: Callable[[], Awaitable[T]]) -> RetryResult[T]:
        """Run ``operation`` until it succeeds, fails fatally or runs out of attempts.

        Args:
            operation: Zero-argument callable returning a fresh awaitable per attempt

        Returns:
            RetryResult with the successful value and every attempt made

        Raises:
            UpstreamError: The fatal error of the attempt that stopped the loop
            UpstreamUnavailableError: When every attempt failed transiently
        """
        policy = self._policy
        attempts: list[UpstreamAttempt] = []
        state = RetryState.ATTEMPTING
        index = 0
        reason = ""
        last_error: BaseException | None = None
        value: Any = None

        while not state.is_terminal:
            if state is RetryState.ATTEMPTING:
                try:
                    value = await asyncio.wait_for(operation(), timeout=policy.timeout)
                except asyncio.TimeoutError as e:
                    last_error = e
                    reason = f"timed out after {policy.timeout * 1000:.0f} ms"
                    state = RetryState.BACKOFF
                except RetryableUpstreamError as e:
                    last_error = e
                    reason = e.reason
                    state = RetryState.BACKOFF
                except UpstreamError as e:
                    attempts.append(UpstreamAttempt(index, AttemptOutcome.FATAL, error=e.message))
                    logger.error("Upstream attempt %d failed fatally: %s", index, e.message)
                    e.attempts = attempts
                    raise
                else:
                    attempts.append(UpstreamAttempt(index, AttemptOutcome.SUCCESS))
                    state = RetryState.SUCCEEDED

                if state is RetryState.BACKOFF and index >= policy.max_retries:
                    attempts.append(UpstreamAttempt(index, AttemptOutcome.RETRYABLE, error=reason))
                    logger.warning("Upstream attempt %d failed: %s", index, reason)
                    state = RetryState.FAILED_EXHAUSTED

            elif state is RetryState.BACKOFF:
                delay = policy.backoff_delay(index, self._rng)
                attempts.append(UpstreamAttempt(index, AttemptOutcome.RETRYABLE, error=reason, backoff_delay=delay))
                logger.warning(
                    "Upstream attempt %d failed: %s; retrying in %.0f ms",
                    index,
                    reason,
                    delay * 1000,
                )
                await self._sleep(delay)
                index += 1
                state = RetryState.ATTEMPTING

        if state is RetryState.FAILED_EXHAUSTED:
            logger.error("Upstream unavailable after %d attempts: %s", len(attempts), reason)
            raise UpstreamUnavailableError(reason, attempts=attempts) from last_error

        return RetryResult(value=value, attempts=attempts)
