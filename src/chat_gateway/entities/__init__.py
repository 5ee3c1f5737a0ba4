"""Domain entities for internal representation.

These are pure dataclasses (frozen) used internally by services
and repositories. They are NOT used for API contracts - use DTOs
from the dto package for that.
"""

from .cache_entry import CacheEntryEntity
from .chat_reply import ChatReplyEntity
from .upstream_attempt import AttemptOutcome, RetryState, UpstreamAttempt

__all__ = [
    "AttemptOutcome",
    "CacheEntryEntity",
    "ChatReplyEntity",
    "RetryState",
    "UpstreamAttempt",
]
