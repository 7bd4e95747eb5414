"""In-process TTL cache with substring invalidation.

Default cache for a single serving process. Entries expire lazily on
access; there is no background sweep. A multi-instance deployment swaps
in RedisCacheStore behind the same protocol.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    """Stored payload with its absolute expiry (monotonic seconds)."""

    key: str
    payload: Any
    stored_at: float
    expires_at: float


class MemoryCacheStore:
    """Thread-safe dict-backed cache.

    Every operation holds the lock for its whole critical section, so it
    is safe for concurrent coroutines and worker threads alike.
    """

    def __init__(
        self,
        default_ttl: float = 300,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize an empty cache.

        Args:
            default_ttl: TTL in seconds used when set() gets none.
            clock: Monotonic time source (injectable for tests).
        """
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def is_available(self) -> bool:
        return True

    async def get(self, key: str) -> Any | None:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                logger.debug("Cache MISS: %s", key)
                return None
            if now >= entry.expires_at:
                del self._entries[key]
                logger.debug("Cache EXPIRED: %s", key)
                return None
        logger.debug("Cache HIT: %s", key)
        return entry.payload

    async def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        if value is None:
            return
        ttl = self.default_ttl if ttl is None else ttl
        now = self._clock()
        with self._lock:
            self._entries[key] = CacheEntry(key, value, now, now + ttl)
        logger.debug("Cache SET: %s (TTL: %ss)", key, ttl)

    async def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    async def invalidate(self, pattern: str) -> int:
        with self._lock:
            doomed = [k for k in self._entries if pattern in k]
            for k in doomed:
                del self._entries[k]
        if doomed:
            logger.info("Cache INVALIDATE: %s (%s keys)", pattern, len(doomed))
        return len(doomed)

    async def clear(self) -> None:
        with self._lock:
            self._entries.clear()
        logger.warning("Cache CLEARED: all keys deleted")

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def keys(self) -> list[str]:
        """Current keys, including not-yet-evicted expired ones."""
        with self._lock:
            return list(self._entries)
