"""Cache entry domain entity."""

from dataclasses import dataclass


@dataclass(frozen=True)
class CacheEntryEntity:
    """Domain entity for a cached reply.

    An entry stays in its store after it expires; callers must check
    ``is_live`` before trusting it.

    Attributes:
        reply: The extracted reply text
        expires_at: Unix timestamp after which the entry is logically invalid
    """

    reply: str
    expires_at: float

    def is_live(self, now: float) -> bool:
        """Return True while ``expires_at`` is still in the future."""
        return self.expires_at > now
