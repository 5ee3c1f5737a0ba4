"""Repository layer for data access.

This layer abstracts external dependencies (Redis, the upstream chat API)
behind protocol-based interfaces. This enables:
- Easy swapping of implementations (in-memory → Redis, Cohere → another provider)
- Unit testing with fake implementations
- Clear separation of concerns

The repositories are protocol-based (structural typing), not inheritance-based.
Any class implementing the required methods will satisfy the protocol.
"""

from chat_gateway.protocols import ChatProvider, ReplyCache

from .cohere_chat_provider import CohereChatProvider
from .memory_reply_cache import MemoryReplyCache
from .redis_reply_cache import RedisReplyCache

__all__ = [
    "ChatProvider",
    "ReplyCache",
    "CohereChatProvider",
    "MemoryReplyCache",
    "RedisReplyCache",
]
