"""Dependency injection configuration for FastAPI app.

Uses FastAPI's app.state pattern for storing service instances.

Pattern:
    - Services stored in app.state during lifespan
    - Dependency functions retrieve from request.app.state
    - Clean separation, no global mutable state
"""

import logging
from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI, Request, WebSocket

from chat_gateway.config import Settings, get_redis_client
from chat_gateway.handlers import ChatHandler
from chat_gateway.protocols import ChatProvider, ReplyCache
from chat_gateway.repositories import CohereChatProvider, MemoryReplyCache, RedisReplyCache
from chat_gateway.services import ChatService, RetryingCaller, RetryPolicy

from .realtime import BroadcastHub

logger = logging.getLogger(__name__)


def get_handler(request: Request) -> ChatHandler:
    """Dependency injection for ChatHandler from app.state.

    Raises:
        RuntimeError: If handler is not initialized
    """
    handler = getattr(request.app.state, "chat_handler", None)
    if handler is None:
        raise RuntimeError("ChatHandler not initialized. Check lifespan setup.")
    return handler


def get_broadcast_hub(websocket: WebSocket) -> BroadcastHub:
    """Dependency injection for the realtime BroadcastHub from app.state."""
    hub = getattr(websocket.app.state, "broadcast_hub", None)
    if hub is None:
        raise RuntimeError("BroadcastHub not initialized. Check lifespan setup.")
    return hub


def build_reply_cache(config: Settings) -> ReplyCache:
    """Create the reply cache backend selected by CACHE_BACKEND."""
    if config.cache_backend == "redis":
        return RedisReplyCache(redis_client=get_redis_client(config), key_prefix=config.cache_key_prefix)
    return MemoryReplyCache(max_entries=config.cache_max_entries)


def build_provider(config: Settings) -> ChatProvider:
    return CohereChatProvider(
        api_key=config.cohere_api_key or "",
        base_url=config.chat_provider_url,
        model_name=config.chat_model,
        timeout=config.upstream_timeout_ms / 1000,
    )


def make_lifespan(
    config: Settings,
    provider: ChatProvider | None = None,
    cache: ReplyCache | None = None,
    retrying_caller: RetryingCaller | None = None,
) -> Callable[[FastAPI], AbstractAsyncContextManager[None]]:
    """Build the lifespan context manager for an app.

    Explicit ``provider``, ``cache`` and ``retrying_caller`` replace the
    ones built from settings (tests inject fakes this way).
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Initializes all layers and stores them in app.state.

        1. Repositories (cache backend, upstream provider)
        2. Service (business logic) - stored in app.state.chat_service
        3. Handler (HTTP endpoints) - stored in app.state.chat_handler
        4. Realtime hub - stored in app.state.broadcast_hub
        """
        chat_provider = provider if provider is not None else build_provider(config)
        reply_cache = cache if cache is not None else build_reply_cache(config)

        chat_service = ChatService(
            provider=chat_provider,
            cache=reply_cache,
            retrying_caller=retrying_caller or RetryingCaller(RetryPolicy.from_settings(config)),
            ttl=config.cache_ttl_seconds,
        )

        app.state.chat_service = chat_service
        app.state.chat_handler = ChatHandler(chat_service=chat_service)
        app.state.broadcast_hub = BroadcastHub()

        logger.info("Chat model: %s", chat_provider.model_name)
        logger.info("Cache backend: %s (ttl %ss)", config.cache_backend, config.cache_ttl_seconds)
        if not chat_provider.is_configured:
            logger.warning("COHERE_API_KEY is not set; /api/ask will answer 500 on cache misses")
        if not reply_cache.health_check():
            logger.warning("Reply cache backend is not reachable")

        yield

        await app.state.broadcast_hub.close_all()
        await chat_provider.close()
        del app.state.chat_handler
        del app.state.chat_service
        del app.state.broadcast_hub
        logger.info("Chat gateway shut down")

    return lifespan


# Type aliases for cleaner dependency injection
HandlerDep = Annotated[ChatHandler, Depends(get_handler)]
HubDep = Annotated[BroadcastHub, Depends(get_broadcast_hub)]
