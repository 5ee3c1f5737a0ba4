"""Service layer for business logic.

This layer contains the core business logic and orchestration.
Services depend on protocols (interfaces), not concrete implementations,
making them testable and flexible.

Architecture:
    Handler -> Service -> Repository
    (HTTP)  -> (Business) -> (Cache / Upstream)

Usage:
    ```python
    from chat_gateway.services import ChatService

    # Using factory method (recommended)
    service = ChatService.create(provider=provider, cache=cache)

    # Or manual creation
    service = ChatService(provider=provider, cache=cache, ttl=30)
    ```
"""

from .chat_service import ChatService, normalize_query
from .reply_extractor import DEFAULT_RULES, ExtractionRule, ReplyExtractor
from .retry import RetryingCaller, RetryPolicy, RetryResult

__all__ = [
    "ChatService",
    "normalize_query",
    "DEFAULT_RULES",
    "ExtractionRule",
    "ReplyExtractor",
    "RetryingCaller",
    "RetryPolicy",
    "RetryResult",
]
