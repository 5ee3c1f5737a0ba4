"""Citipulse Chat Gateway - resilient chat assistant for civic issue reporting.

This package provides a layered architecture around one upstream chat call:

Layers:
    - protocols: Interface contracts (ReplyCache, ChatProvider)
    - repositories: Cache backends and the upstream provider client
    - services: Business logic (cache lookup, retry loop, reply extraction)
    - handlers: HTTP endpoint handlers
    - dto: Data transfer objects (API contracts)
    - entities: Domain models (internal)

Usage:
    ```python
    from chat_gateway.repositories import CohereChatProvider, MemoryReplyCache
    from chat_gateway.services import ChatService

    service = ChatService.create(
        provider=CohereChatProvider.create(),
        cache=MemoryReplyCache.create(),
    )
    result = await service.handle_chat_request("Who fixes broken streetlights?")
    ```

For HTTP API:
    ```python
    from chat_gateway.api.app import app
    ```
"""

from chat_gateway.config import configure_logging, get_redis_client, settings
from chat_gateway.dto import AskRequest, AskResponse
from chat_gateway.entities import CacheEntryEntity, ChatReplyEntity, UpstreamAttempt
from chat_gateway.errors import (
    BadRequestError,
    ChatGatewayError,
    MisconfiguredError,
    UpstreamError,
    UpstreamMalformedError,
    UpstreamRejectedError,
    UpstreamUnavailableError,
)
from chat_gateway.handlers import ChatHandler
from chat_gateway.protocols import ChatProvider, ReplyCache
from chat_gateway.repositories import CohereChatProvider, MemoryReplyCache, RedisReplyCache
from chat_gateway.services import ChatService, ReplyExtractor, RetryingCaller, RetryPolicy

__all__ = [
    # Configuration
    "settings",
    "get_redis_client",
    "configure_logging",
    # Protocols (interfaces)
    "ChatProvider",
    "ReplyCache",
    # Services (business logic)
    "ChatService",
    "ReplyExtractor",
    "RetryingCaller",
    "RetryPolicy",
    # Handlers (HTTP)
    "ChatHandler",
    # Repositories (data access)
    "CohereChatProvider",
    "MemoryReplyCache",
    "RedisReplyCache",
    # Entities (domain models)
    "CacheEntryEntity",
    "ChatReplyEntity",
    "UpstreamAttempt",
    # DTOs (API contracts)
    "AskRequest",
    "AskResponse",
    # Errors
    "ChatGatewayError",
    "BadRequestError",
    "MisconfiguredError",
    "UpstreamError",
    "UpstreamRejectedError",
    "UpstreamMalformedError",
    "UpstreamUnavailableError",
]
