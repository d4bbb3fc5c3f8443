# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.
"""Best-effort cache access for services.

PostgreSQL is the source of truth. Once a write has committed, a Redis
outage must not turn the response into a failure, so these helpers log
and carry on instead of raising.
"""

import logging
from typing import Any

from redis.exceptions import RedisError

from ..core.cache import Cache

logger = logging.getLogger(__name__)

CACHE_ERRORS = (RedisError, OSError, RuntimeError)


async def cached_get(cache: Cache, key: str) -> Any | None:
    """Return the cached value, or ``None`` on a miss or cache failure."""
    try:
        return await cache.get(key)
    except CACHE_ERRORS as e:
        logger.warning("Cache read for %s failed, using database: %s", key, e)
        return None


async def cached_set(cache: Cache, key: str, value: Any, ttl: int) -> None:
    try:
        await cache.set(key, value, ttl)
    except CACHE_ERRORS as e:
        logger.warning("Cache write for %s failed: %s", key, e)


async def invalidate(cache: Cache, *keys: str) -> None:
    """Delete ``keys``; a failure leaves them to expire on their TTL."""
    try:
        await cache.delete(*keys)
    except CACHE_ERRORS as e:
        logger.warning("Cache invalidation for %s failed: %s", ", ".join(keys), e)
