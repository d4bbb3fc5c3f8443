# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.
"""Redis caching and pub/sub layer with TTL support."""

from __future__ import annotations

import json
import logging
from datetime import timedelta
from typing import TYPE_CHECKING, Any

import redis.asyncio as redis
from attrs import field, frozen
from beartype import beartype

from .config import get_settings

__all__ = [
    "Cache",
    "CacheConfig",
    "get_cache",
]

if TYPE_CHECKING:
    from redis.asyncio import Redis as RedisType
else:
    RedisType = redis.Redis

logger = logging.getLogger(__name__)


@frozen
class CacheConfig:
    """Immutable cache configuration."""

    url: str = field()
    default_ttl: int = field(default=300)
    max_connections: int = field(default=10)


class Cache:
    """Redis cache manager with async support.

    An already-created client (for example ``fakeredis``) may be passed in,
    in which case :meth:`connect` is a no-op.
    """

    def __init__(
        self,
        redis_client: RedisType | None = None,
        config: CacheConfig | None = None,
    ) -> None:
        self._redis: RedisType | None = redis_client
        self._config = config or self._get_config()

    @staticmethod
    def _get_config() -> CacheConfig:
        settings = get_settings()
        return CacheConfig(url=settings.redis_url, default_ttl=settings.redis_ttl_seconds)

    @property
    def client(self) -> RedisType:
        if self._redis is None:
            raise RuntimeError("Cache not connected")
        return self._redis

    @beartype
    async def connect(self) -> None:
        """Create Redis connection pool."""
        if self._redis is not None:
            return
        self._redis = redis.from_url(
            self._config.url,
            max_connections=self._config.max_connections,
            decode_responses=True,
        )

    @beartype
    async def disconnect(self) -> None:
        """Close Redis connection."""
        if self._redis is None:
            return
        await self._redis.aclose()
        self._redis = None

    @beartype
    async def get(self, key: str) -> Any | None:
        """Get a JSON value from cache."""
        value = await self.client.get(key)
        if value is None:
            return None
        try:
            return json.loads(value)
        except (json.JSONDecodeError, TypeError):
            return value

    @beartype
    async def set(
        self,
        key: str,
        value: Any,
        ttl: int | timedelta | None = None,
    ) -> bool:
        """Store a value as JSON with a TTL."""
        if ttl is None:
            ttl = self._config.default_ttl
        if isinstance(ttl, int):
            ttl = timedelta(seconds=ttl)
        result = await self.client.setex(key, ttl, json.dumps(value, default=str))
        return bool(result)

    @beartype
    async def delete(self, *keys: str) -> bool:
        """Delete one or more keys."""
        if not keys:
            return False
        result = await self.client.delete(*keys)
        return bool(result > 0)

    @beartype
    async def publish(self, channel: str, payload: dict[str, Any]) -> int:
        """Publish a JSON message; returns the number of subscribers reached."""
        result = await self.client.publish(channel, json.dumps(payload, default=str))
        return int(result)

    @property
    def is_connected(self) -> bool:
        return self._redis is not None

    @beartype
    async def health_check(self) -> bool:
        if self._redis is None:
            return False
        try:
            await self._redis.ping()
            return True
        except (redis.RedisError, OSError) as e:
            logger.warning("Redis health check failed: %s", e)
            return False


_cache: Cache | None = None


@beartype
def get_cache() -> Cache:
    """Get global cache instance."""
    global _cache
    if _cache is None:
        _cache = Cache()
    return _cache
