"""
Response Cache - TTL-based LRU cache for successful GET responses.

Reduces redundant backend calls for idempotent reads. Keys are full request
URLs used verbatim: query parameter order is not normalized, so differently
ordered queries are cached as separate entries.
"""

import logging
import threading
import time
from typing import Callable, Optional, Protocol

from cachetools import TTLCache

from ..models import CacheEntry

logger = logging.getLogger("gateway.response_cache")


class CacheStore(Protocol):
    """Storage capability used by the request processor."""

    async def get(self, key: str) -> Optional[CacheEntry]: ...

    async def put(self, key: str, entry: CacheEntry) -> None: ...


class InMemoryCacheStore:
    """
    Process-local CacheStore backed by cachetools.TTLCache.

    TTLCache handles both LRU eviction and expiry; expired entries are dropped
    lazily on access. Each get/put is a single dict operation under a lock, so
    readers always see a whole entry and concurrent writers are last-writer-wins.
    """

    def __init__(
        self,
        ttl_seconds: float = 60,
        max_size: int = 1024,
        timer: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the cache.

        Args:
            ttl_seconds: Freshness window (default: 60)
            max_size: Maximum number of entries (default: 1024)
            timer: Clock used for expiry, injectable for tests
        """
        self.ttl_seconds = ttl_seconds
        self.max_size = max_size
        self._cache = TTLCache(maxsize=max_size, ttl=ttl_seconds, timer=timer)
        self._lock = threading.Lock()

        logger.debug(
            f"InMemoryCacheStore initialized (cachetools): "
            f"max_size={max_size}, ttl={ttl_seconds}s"
        )

    async def get(self, key: str) -> Optional[CacheEntry]:
        """
        Returns:
            Cached entry, or None if not found or expired
        """
        with self._lock:
            return self._cache.get(key)

    async def put(self, key: str, entry: CacheEntry) -> None:
        with self._lock:
            self._cache[key] = entry

    def clear(self) -> None:
        """Clear all cache entries."""
        with self._lock:
            self._cache.clear()
        logger.debug("Cache cleared")

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)
