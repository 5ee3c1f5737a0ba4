"""Redis implementation of ReplyCache.

Each reply is stored as a small JSON document under ``<prefix>:<key>``.
Redis expires the key once the reply's lifetime is over, but the stored
``expires_at`` is returned as well so the service can apply the same
liveness check it applies to every other backend.
"""

import json
import logging
import math
import time
from collections.abc import Callable

import redis

from chat_gateway.config import get_redis_client, settings
from chat_gateway.entities import CacheEntryEntity

logger = logging.getLogger(__name__)


class RedisReplyCache:
    """Redis-backed reply cache.

    This class satisfies the ReplyCache protocol through structural
    typing - no explicit inheritance needed.
    """

    def __init__(
        self,
        redis_client: redis.Redis | None = None,
        key_prefix: str | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the Redis reply cache.

        Args:
            redis_client: Redis client instance (decode_responses=True). If None, creates default.
            key_prefix: Namespace for stored keys. Defaults to settings.
            clock: Source of the current Unix time, used to compute key expiry.
        """
        self._client = redis_client or get_redis_client()
        self._prefix = key_prefix or settings.cache_key_prefix
        self._clock = clock

    def _key(self, key: str) -> str:
        return f"{self._prefix}:{key}"

    def get(self, key: str) -> CacheEntryEntity | None:
        raw = self._client.get(self._key(key))
        if raw is None:
            return None

        try:
            data = json.loads(raw)
            return CacheEntryEntity(reply=data["reply"], expires_at=float(data["expires_at"]))
        except (json.JSONDecodeError, KeyError, TypeError, ValueError):
            logger.warning("Discarding unreadable cache entry %s", self._key(key))
            return None

    def set(self, key: str, entry: CacheEntryEntity) -> None:
        # Redis rejects non-positive expiries; keep at least one millisecond.
        ttl_ms = max(1, math.ceil((entry.expires_at - self._clock()) * 1000))
        payload = json.dumps({"reply": entry.reply, "expires_at": entry.expires_at})
        self._client.set(self._key(key), payload, px=ttl_ms)

    def delete(self, key: str) -> bool:
        result: int = self._client.delete(self._key(key))  # type: ignore[assignment]
        return result > 0

    def clear_all(self) -> int:
        count = 0
        for key in self._client.scan_iter(match=f"{self._prefix}:*"):
            if self._client.delete(key):
                count += 1
        return count

    def count_all(self) -> int:
        count = 0
        for _ in self._client.scan_iter(match=f"{self._prefix}:*"):
            count += 1
        return count

    def health_check(self) -> bool:
        try:
            return bool(self._client.ping())
        except redis.RedisError:
            return False

    def get_stats(self) -> dict:
        return {
            "backend": "redis",
            "key_prefix": self._prefix,
            "total_entries": self.count_all(),
        }
