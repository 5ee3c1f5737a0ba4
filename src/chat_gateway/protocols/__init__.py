"""Protocol interfaces for swappable implementations.

This package contains protocol definitions using structural typing.
Protocols enable:
- Easy swapping of implementations (in-memory → Redis, Cohere → another provider)
- Unit testing with fake implementations
- Clear separation of concerns
"""

from .chat_provider import ChatProvider
from .reply_cache import ReplyCache

__all__ = [
    "ChatProvider",
    "ReplyCache",
]
