"""Redis cache service for hotel static details."""

import json
import logging
from typing import Any

import redis.asyncio as redis

from staysearch.config import settings

logger = logging.getLogger(__name__)

TTL_HOTEL_DETAILS = settings.hotel_details_cache_ttl  # 1 hour


class CacheService:
    """Redis-backed cache with typed TTLs. Misses and Redis outages both read as None."""

    def __init__(self, redis_url: str | None = None):
        self._redis_url = settings.redis_url if redis_url is None else redis_url
        self._redis: redis.Redis | None = None

    async def _get_redis(self) -> redis.Redis | None:
        if not self._redis_url:
            return None
        if self._redis is None:
            try:
                self._redis = redis.from_url(
                    self._redis_url,
                    encoding="utf-8",
                    decode_responses=True,
                )
                await self._redis.ping()
            except Exception as e:
                logger.warning(f"Redis unavailable, cache disabled: {e}")
                self._redis = None
                return None
        return self._redis

    async def get(self, key: str) -> Any | None:
        """Get a value from cache. Returns None on miss or error."""
        try:
            r = await self._get_redis()
            if r is None:
                return None
            raw = await r.get(key)
            if raw is None:
                return None
            return json.loads(raw)
        except Exception as e:
            logger.debug(f"Cache read failed for {key}: {e}")
            return None

    async def set(self, key: str, value: Any, ttl: int = TTL_HOTEL_DETAILS) -> bool:
        """Set a value in cache with TTL. Returns False on error."""
        try:
            r = await self._get_redis()
            if r is None:
                return False
            await r.set(key, json.dumps(value, default=str), ex=ttl)
            return True
        except Exception as e:
            logger.debug(f"Cache write failed for {key}: {e}")
            return False

    # Typed helpers

    def hotel_details_key(self, hotel_id: str, language: str | None) -> str:
        return f"hoteldetails:{hotel_id}:{language or ''}"

    async def get_hotel_details(self, hotel_id: str, language: str | None) -> dict | None:
        return await self.get(self.hotel_details_key(hotel_id, language))

    async def set_hotel_details(self, hotel_id: str, language: str | None, data: dict):
        await self.set(self.hotel_details_key(hotel_id, language), data, TTL_HOTEL_DETAILS)

    async def close(self):
        if self._redis:
            await self._redis.aclose()
            self._redis = None
