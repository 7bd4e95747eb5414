"""Redis-backed cache store for multi-instance deployments.

Same contract as MemoryCacheStore (TTL, substring invalidation, misses on
any fault) with entries shared across server processes. Values are JSON;
keys live under a namespace so clear() never touches foreign data.
"""

from __future__ import annotations

import json
import logging
import re
from typing import TYPE_CHECKING, Any

import redis.asyncio as redis

from vdrive.core.config import get_settings

if TYPE_CHECKING:
    from vdrive.core.config import Settings

logger = logging.getLogger(__name__)

_GLOB_SPECIAL = re.compile(r"([*?\[\]\\])")


def _glob_escape(value: str) -> str:
    return _GLOB_SPECIAL.sub(r"\\\1", value)


class RedisCacheStore:
    """Async Redis cache implementing CacheProtocol.

    Call connect() at startup and disconnect() at shutdown. When Redis is
    unreachable every read is a miss and every write is dropped.
    """

    def __init__(
        self,
        redis_client: redis.Redis | None = None,
        settings: "Settings | None" = None,
        namespace: str = "vdrive:",
    ) -> None:
        """Initialize cache store.

        Args:
            redis_client: Optional Redis client for testing or DI.
            settings: Application settings; if None, uses get_settings().
            namespace: Prefix applied to every stored key.
        """
        self.redis = redis_client
        self.settings = settings or get_settings()
        self.namespace = namespace
        self.default_ttl = self.settings.cache_ttl_default
        self._connected = redis_client is not None

    async def connect(self) -> None:
        """Establish Redis connection. Call on app startup."""
        if self.redis is None:
            try:
                self.redis = redis.Redis(
                    host=self.settings.redis_host,
                    port=self.settings.redis_port,
                    db=self.settings.redis_db,
                    password=(
                        self.settings.redis_password.get_secret_value()
                        if self.settings.redis_password
                        else None
                    ),
                    decode_responses=True,
                    socket_connect_timeout=5,
                    socket_keepalive=True,
                )
                await self.redis.ping()
                self._connected = True
                logger.info(
                    "Redis cache connected: %s:%s",
                    self.settings.redis_host,
                    self.settings.redis_port,
                )
            except (redis.ConnectionError, redis.TimeoutError) as e:
                logger.warning("Redis connection failed: %s. Cache disabled.", e)
                self._connected = False
                self.redis = None

    async def disconnect(self) -> None:
        """Close Redis connection. Call on app shutdown."""
        if self.redis:
            await self.redis.aclose()
            self.redis = None
            self._connected = False
            logger.info("Redis cache disconnected")

    def is_available(self) -> bool:
        """Return True if Redis is connected and usable."""
        return self._connected and self.redis is not None

    def _k(self, key: str) -> str:
        return f"{self.namespace}{key}"

    async def get(self, key: str) -> Any | None:
        """Return cached value (JSON-deserialized) or None if missing/unavailable."""
        if not self.is_available() or self.redis is None:
            return None
        try:
            value = await self.redis.get(self._k(key))
        except redis.RedisError:
            logger.warning("Cache get error for key %s", key, exc_info=True)
            return None
        if value is None:
            logger.debug("Cache MISS: %s", key)
            return None
        try:
            payload = json.loads(value)
        except ValueError:
            logger.warning("Cache entry for %s is not valid JSON; treating as miss", key)
            return None
        logger.debug("Cache HIT: %s", key)
        return payload

    async def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        """Store JSON-serializable value with a millisecond-precision TTL."""
        if value is None or not self.is_available() or self.redis is None:
            return
        ttl = self.default_ttl if ttl is None else ttl
        try:
            serialized = json.dumps(value)
            await self.redis.set(self._k(key), serialized, px=max(1, int(ttl * 1000)))
            logger.debug("Cache SET: %s (TTL: %ss)", key, ttl)
        except (TypeError, ValueError):
            logger.warning("Cache value for %s is not JSON-serializable", key)
        except redis.RedisError:
            logger.warning("Cache set error for key %s", key, exc_info=True)

    async def delete(self, key: str) -> None:
        if not self.is_available() or self.redis is None:
            return
        try:
            await self.redis.delete(self._k(key))
        except redis.RedisError:
            logger.warning("Cache delete error for key %s", key, exc_info=True)

    async def _unlink_matching(self, match: str) -> int:
        """SCAN + batched UNLINK of keys matching a glob (non-blocking)."""
        if self.redis is None:
            return 0
        chunk_size = 500
        deleted = 0
        chunk: list[str] = []
        async for k in self.redis.scan_iter(match=match):
            chunk.append(k)
            if len(chunk) >= chunk_size:
                deleted += int(await self.redis.unlink(*chunk) or 0)
                chunk = []
        if chunk:
            deleted += int(await self.redis.unlink(*chunk) or 0)
        return deleted

    async def invalidate(self, pattern: str) -> int:
        """Delete every key containing pattern."""
        if not self.is_available() or self.redis is None:
            return 0
        try:
            deleted = await self._unlink_matching(
                f"{_glob_escape(self.namespace)}*{_glob_escape(pattern)}*"
            )
        except redis.RedisError:
            logger.warning("Cache invalidate error for %s", pattern, exc_info=True)
            return 0
        if deleted:
            logger.info("Cache INVALIDATE: %s (%s keys)", pattern, deleted)
        return deleted

    async def clear(self) -> None:
        """Delete every key in the namespace."""
        if not self.is_available() or self.redis is None:
            return
        try:
            deleted = await self._unlink_matching(f"{_glob_escape(self.namespace)}*")
            logger.warning("Cache CLEARED: %s keys deleted", deleted)
        except redis.RedisError:
            logger.warning("Cache clear error", exc_info=True)
