"""Reply cache protocol.

Defines the interface for any store that keeps extracted chat replies
under their normalized query key.

Implementations can include:
- In-process ordered map (default)
- Redis
"""

from typing import Protocol, runtime_checkable

from chat_gateway.entities import CacheEntryEntity


@runtime_checkable
class ReplyCache(Protocol):
    """Protocol for reply cache backends.

    Stores never judge liveness: ``get`` may hand back an entry whose
    ``expires_at`` has passed, and the caller decides whether to trust it.
    """

    def get(self, key: str) -> CacheEntryEntity | None:
        """Fetch the entry stored under a normalized key.

        Args:
            key: The normalized query text

        Returns:
            The stored entry, or None if nothing is stored
        """
        ...

    def set(self, key: str, entry: CacheEntryEntity) -> None:
        """Store or overwrite the entry for a normalized key.

        Args:
            key: The normalized query text
            entry: The reply and its expiry timestamp
        """
        ...

    def delete(self, key: str) -> bool:
        """Delete the entry for a key.

        Returns:
            True if deleted, False otherwise
        """
        ...

    def clear_all(self) -> int:
        """Clear all entries.

        Returns:
            Number of entries deleted
        """
        ...

    def count_all(self) -> int:
        """Count stored entries, expired ones included."""
        ...

    def health_check(self) -> bool:
        """Check if the backend is accessible."""
        ...

    def get_stats(self) -> dict:
        """Get backend statistics (implementation-specific)."""
        ...
