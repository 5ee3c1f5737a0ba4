"""In-process implementation of ReplyCache.

Entries live in an ordered map owned by the instance. Expired entries are
never swept proactively; they are only dropped when the capacity cap forces
an eviction or a fresh reply overwrites them.
"""

import time
from collections import OrderedDict
from collections.abc import Callable

from chat_gateway.config import settings
from chat_gateway.entities import CacheEntryEntity


class MemoryReplyCache:
    """Ordered-map reply cache with an optional LRU capacity cap.

    This class satisfies the ReplyCache protocol through structural
    typing - no explicit inheritance needed.

    Example:
        ```python
        cache = MemoryReplyCache.create(max_entries=512)
        cache.set("hello world", CacheEntryEntity(reply="Hi!", expires_at=time.time() + 30))
        cache.get("hello world")
        ```
    """

    def __init__(
        self,
        max_entries: int | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the in-memory reply cache.

        Args:
            max_entries: Capacity cap. 0 means unbounded. Defaults to settings.
            clock: Source of the current Unix time, used to find expired entries on eviction.
        """
        self._entries: OrderedDict[str, CacheEntryEntity] = OrderedDict()
        self._max_entries = settings.cache_max_entries if max_entries is None else max_entries
        self._clock = clock
        self._evictions = 0

    @classmethod
    def create(cls, max_entries: int | None = None) -> "MemoryReplyCache":
        """Factory method to create MemoryReplyCache with defaults.

        Args:
            max_entries: Capacity cap. If None, uses settings.

        Returns:
            Configured MemoryReplyCache
        """
        return cls(max_entries=max_entries)

    def get(self, key: str) -> CacheEntryEntity | None:
        entry = self._entries.get(key)
        if entry is not None:
            self._entries.move_to_end(key)
        return entry

    def set(self, key: str, entry: CacheEntryEntity) -> None:
        self._entries[key] = entry
        self._entries.move_to_end(key)
        if self._max_entries:
            self._evict()

    def _evict(self) -> None:
        """Bring the map back under capacity: expired entries first, then least recently used."""
        if len(self._entries) <= self._max_entries:
            return

        now = self._clock()
        for key in [k for k, e in self._entries.items() if not e.is_live(now)]:
            del self._entries[key]
            self._evictions += 1

        while len(self._entries) > self._max_entries:
            self._entries.popitem(last=False)
            self._evictions += 1

    def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def clear_all(self) -> int:
        count = len(self._entries)
        self._entries.clear()
        return count

    def count_all(self) -> int:
        return len(self._entries)

    def health_check(self) -> bool:
        return True

    def get_stats(self) -> dict:
        return {
            "backend": "memory",
            "total_entries": self.count_all(),
            "max_entries": self._max_entries,
            "evictions": self._evictions,
        }

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
