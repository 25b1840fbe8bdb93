"""Redis store for caching.

Handles:
- Caching with TTL policies
- JSON payload helpers

TTL policies:
- Seller locations (geo filter input): 0-3600 seconds, see Settings.seller_location_cache_ttl

All cache use is best-effort: callers treat `RedisError` as a cache miss.
"""

import json
import logging
from typing import Any

from fastapi import Request
import redis.asyncio as redis

from marketplace.settings import Settings

# Key prefixes
PREFIX_GEO = "geo:"
KEY_SELLER_LOCATIONS = f"{PREFIX_GEO}seller_locations"

logger = logging.getLogger("uvicorn.error")


class RedisCache:
    """Thin async cache wrapper, constructed once per application."""

    def __init__(self, client: redis.Redis) -> None:
        self._redis = client

    @classmethod
    async def connect(cls, settings: Settings) -> "RedisCache":
        """Create client and validate connectivity early."""
        client = redis.from_url(
            settings.redis_url,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
        )
        await client.ping()
        logger.info("Redis connected")
        return cls(client)

    async def close(self) -> None:
        """Close Redis connection."""
        await self._redis.aclose()

    # ============================================================
    # Generic cache operations
    # ============================================================

    async def get(self, key: str) -> str | None:
        """Get value from cache.

        Args:
            key: Cache key.

        Returns:
            Cached value or None if not found.
        """
        return await self._redis.get(key)

    async def set(self, key: str, value: str, ttl: int) -> None:
        """Set value in cache with TTL.

        Args:
            key: Cache key.
            value: Value to cache.
            ttl: Time-to-live in seconds.
        """
        await self._redis.setex(key, ttl, value)

    async def delete(self, key: str) -> None:
        """Delete value from cache."""
        await self._redis.delete(key)

    async def get_json(self, key: str) -> Any | None:
        """Get JSON value from cache (None if missing)."""
        value = await self.get(key)
        if value:
            return json.loads(value)
        return None

    async def set_json(self, key: str, value: Any, ttl: int) -> None:
        """Set JSON value in cache."""
        await self.set(key, json.dumps(value), ttl)


def get_cache(request: Request) -> RedisCache | None:
    """FastAPI dependency: the app's cache, or None when Redis is unavailable."""
    return getattr(request.app.state, "cache", None)
