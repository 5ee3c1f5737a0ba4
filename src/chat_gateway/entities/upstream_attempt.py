"""Upstream attempt records and retry states."""

from dataclasses import dataclass
from enum import Enum


class AttemptOutcome(str, Enum):
    """Classification of a single upstream attempt."""

    SUCCESS = "success"
    RETRYABLE = "retryable"
    FATAL = "fatal"


class RetryState(str, Enum):
    """States of the per-request retry loop."""

    ATTEMPTING = "attempting"
    BACKOFF = "backoff"
    SUCCEEDED = "succeeded"
    FAILED_FATAL = "failed_fatal"
    FAILED_EXHAUSTED = "failed_exhausted"

    @property
    def is_terminal(self) -> bool:
        return self in (RetryState.SUCCEEDED, RetryState.FAILED_FATAL, RetryState.FAILED_EXHAUSTED)


@dataclass(frozen=True)
class UpstreamAttempt:
    """Record of one upstream attempt within a single chat request.

    Attributes:
        index: Zero-based attempt number
        outcome: How the attempt was classified
        error: Failure reason, None on success
        backoff_delay: Seconds slept before the next attempt, None if no retry followed
    """

    index: int
    outcome: AttemptOutcome
    error: str | None = None
    backoff_delay: float | None = None
