"""Chat reply domain entity."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ChatReplyEntity:
    """Result of a successful chat request.

    Attributes:
        reply: Text returned to the caller
        cached: Whether the reply was served from the reply cache
        attempts: Number of upstream attempts made (0 on a cache hit)
    """

    reply: str
    cached: bool = False
    attempts: int = 0
