"""
Redis-backed cache for derived feed counters.

Keys (STRING values holding a decimal integer, SETEX'd with a TTL):
  • feed:{feed_id}:likeCount
  • feed:{feed_id}:commentCount

Values are advisory; a missing key just means "recompute from the store".
"""
import logging
from typing import Optional, Protocol, Union

import redis.asyncio as aioredis

from feed_service.config import Settings

logger = logging.getLogger(__name__)

LIKE_COUNT_KEY = "feed:{feed_id}:likeCount"
COMMENT_COUNT_KEY = "feed:{feed_id}:commentCount"


def like_count_key(feed_id: str) -> str:
    return LIKE_COUNT_KEY.format(feed_id=feed_id)


def comment_count_key(feed_id: str) -> str:
    return COMMENT_COUNT_KEY.format(feed_id=feed_id)


def count_keys(feed_id: str) -> tuple[str, str]:
    return like_count_key(feed_id), comment_count_key(feed_id)


class CountCache(Protocol):
    async def get(self, key: str) -> Optional[str]: ...

    async def set_with_expiry(self, key: str, ttl_seconds: int, value: Union[int, str]) -> None: ...

    async def delete(self, *keys: str) -> None: ...


class RedisCountCache:
    def __init__(self, redis: aioredis.Redis):
        self._redis = redis

    async def get(self, key: str) -> Optional[str]:
        return await self._redis.get(key)

    async def set_with_expiry(self, key: str, ttl_seconds: int, value: Union[int, str]) -> None:
        await self._redis.setex(key, ttl_seconds, str(value))

    async def delete(self, *keys: str) -> None:
        # DEL on a missing key is a no-op in Redis
        if keys:
            await self._redis.delete(*keys)


async def init_redis(settings: Settings) -> aioredis.Redis:
    redis = aioredis.Redis(
        host=settings.redis_host,
        port=settings.redis_port,
        db=settings.redis_db,
        decode_responses=True,
    )
    await redis.ping()
    logger.info("Redis connected at %s:%s", settings.redis_host, settings.redis_port)
    return redis
