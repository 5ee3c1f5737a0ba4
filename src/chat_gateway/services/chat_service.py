"""Chat service for core business logic.

This service orchestrates a chat request by coordinating the reply cache,
the retrying upstream call and reply extraction.
"""

import logging
import time
from collections.abc import Callable
from typing import Any

from chat_gateway.config import Settings, settings
from chat_gateway.entities import CacheEntryEntity, ChatReplyEntity
from chat_gateway.errors import BadRequestError, MisconfiguredError, UpstreamError
from chat_gateway.models import PerformanceMetrics
from chat_gateway.protocols import ChatProvider, ReplyCache

from .reply_extractor import ReplyExtractor
from .retry import RetryingCaller, RetryPolicy

logger = logging.getLogger(__name__)


def normalize_query(message: str) -> str:
    """Cache key for a query: surrounding whitespace trimmed, case folded."""
    return message.strip().casefold()


class ChatService:
    """Core chat orchestration service.

    This service depends on PROTOCOLS, not concrete implementations:
    - ReplyCache: can be in-memory, Redis, etc.
    - ChatProvider: can be Cohere or any provider speaking the same shape

    Example:
        ```python
        from chat_gateway.repositories import CohereChatProvider, MemoryReplyCache
        from chat_gateway.services import ChatService

        service = ChatService.create(
            provider=CohereChatProvider.create(),
            cache=MemoryReplyCache.create(),
        )
        result = await service.handle_chat_request("How do I report a pothole?")
        ```
    """

    def __init__(
        self,
        provider: ChatProvider,
        cache: ReplyCache,
        retrying_caller: RetryingCaller | None = None,
        extractor: ReplyExtractor | None = None,
        ttl: float | None = None,
        clock: Callable[[], float] = time.time,
        metrics: PerformanceMetrics | None = None,
    ) -> None:
        """Initialize the chat service.

        Args:
            provider: Upstream chat provider (required).
            cache: Reply cache backend (required).
            retrying_caller: Retry loop around the provider. Defaults to settings.
            extractor: Reply extraction rules. Defaults to the standard rule list.
            ttl: Lifetime of cached replies in seconds. Defaults to settings.
            clock: Source of the current Unix time.
            metrics: Performance counters. A fresh instance by default.
        """
        self._provider = provider
        self._cache = cache
        self._retry = retrying_caller or RetryingCaller()
        self._extractor = extractor or ReplyExtractor()
        self._ttl = ttl or settings.cache_ttl_seconds
        self._clock = clock
        self._metrics = metrics or PerformanceMetrics()

    @classmethod
    def create(
        cls,
        provider: ChatProvider,
        cache: ReplyCache,
        config: Settings | None = None,
    ) -> "ChatService":
        """Factory method to create ChatService from Settings.

        Args:
            provider: Upstream chat provider (required).
            cache: Reply cache backend (required).
            config: Settings to read the retry policy and TTL from. If None, uses global settings.

        Returns:
            Configured ChatService instance
        """
        config = config or settings
        return cls(
            provider=provider,
            cache=cache,
            retrying_caller=RetryingCaller(RetryPolicy.from_settings(config)),
            ttl=config.cache_ttl_seconds,
        )

    async def handle_chat_request(self, message: Any) -> ChatReplyEntity:
        """Answer a user query, from cache when possible.

        Business logic:
        1. Validate the message
        2. Return a live cached reply if there is one
        3. Require a provider credential
        4. Call upstream with retry, backoff and timeout
        5. Extract the reply, cache it, return it

        Args:
            message: The user's query

        Returns:
            ChatReplyEntity with the reply text

        Raises:
            BadRequestError: If message is not a non-empty string
            MisconfiguredError: If no provider credential is configured
            UpstreamError: If the upstream call failed
        """
        if not isinstance(message, str) or not message:
            self._metrics.record_failure(BadRequestError.kind)
            raise BadRequestError()

        key = normalize_query(message)
        entry = self._cache.get(key)
        if entry is not None and entry.is_live(self._clock()):
            self._metrics.record_hit()
            logger.debug("Cache hit for %r", key)
            return ChatReplyEntity(reply=entry.reply, cached=True)

        self._metrics.record_miss()

        if not self._provider.is_configured:
            self._metrics.record_failure(MisconfiguredError.kind)
            logger.error("Chat request rejected: provider credential is not configured")
            raise MisconfiguredError()

        start_time = time.perf_counter()
        try:
            result = await self._retry.call(lambda: self._provider.chat(message))
        except UpstreamError as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            self._metrics.record_upstream_call(duration_ms, len(e.attempts) or 1)
            self._metrics.record_failure(e.kind)
            logger.error("Upstream call failed: %s", e)
            raise
        duration_ms = (time.perf_counter() - start_time) * 1000
        self._metrics.record_upstream_call(duration_ms, len(result.attempts))

        reply = self._extractor.extract(result.value)
        self._cache.set(key, CacheEntryEntity(reply=reply, expires_at=self._clock() + self._ttl))

        logger.info("Parsed upstream reply: %s", reply)
        return ChatReplyEntity(reply=reply, cached=False, attempts=len(result.attempts))

    def clear_cache(self) -> int:
        """Clear all cached replies.

        Returns:
            Number of entries deleted
        """
        return self._cache.clear_all()

    def get_stats(self) -> dict:
        """Get cache and performance statistics.

        Returns:
            Dictionary with ``cache`` and ``performance`` sections
        """
        cache_stats = self._cache.get_stats()
        cache_stats["ttl_seconds"] = self._ttl
        return {
            "cache": cache_stats,
            "performance": self._metrics.to_dict(),
        }

    def reset_metrics(self) -> None:
        self._metrics = PerformanceMetrics()

    def is_healthy(self) -> bool:
        """Check if the reply cache backend answers."""
        return self._cache.health_check()

    @property
    def provider_configured(self) -> bool:
        return self._provider.is_configured

    @property
    def metrics(self) -> PerformanceMetrics:
        return self._metrics

    @property
    def cache(self) -> ReplyCache:
        """Get the underlying reply cache (for testing)."""
        return self._cache

    @property
    def provider(self) -> ChatProvider:
        """Get the underlying chat provider (for testing)."""
        return self._provider
