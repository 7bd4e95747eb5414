"""Cache protocol (DIP). Implementations: MemoryCacheStore, RedisCacheStore."""

from typing import Any, Protocol


class CacheProtocol(Protocol):
    """Protocol for TTL key/value caches with substring invalidation.

    ``get`` returns None on a miss, so None is never stored as a payload.
    Implementations must be safe under concurrent use and must never raise
    for backend faults; a fault is reported as a miss.
    """

    def is_available(self) -> bool:
        """Return True if cache is connected and usable."""
        ...

    async def get(self, key: str) -> Any:
        """Return cached payload or None (absent or expired)."""
        ...

    async def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        """Store payload with TTL in seconds (backend default when None)."""
        ...

    async def delete(self, key: str) -> None:
        """Remove key from cache."""
        ...

    async def invalidate(self, pattern: str) -> int:
        """Remove every key containing pattern; return how many were removed."""
        ...

    async def clear(self) -> None:
        """Remove every entry."""
        ...
