from unittest.mock import AsyncMock

import pytest

from feed_service.cache import RedisCountCache, comment_count_key, count_keys, like_count_key


def test_counter_keys():
    assert like_count_key("f1") == "feed:f1:likeCount"
    assert comment_count_key("f1") == "feed:f1:commentCount"
    assert count_keys("f1") == ("feed:f1:likeCount", "feed:f1:commentCount")


@pytest.mark.asyncio
async def test_redis_cache_uses_get_setex_and_del():
    redis = AsyncMock()
    redis.get.return_value = "7"
    cache = RedisCountCache(redis)

    assert await cache.get("feed:f1:likeCount") == "7"
    await cache.set_with_expiry("feed:f1:likeCount", 600, 7)
    await cache.delete("feed:f1:likeCount", "feed:f1:commentCount")

    redis.get.assert_awaited_once_with("feed:f1:likeCount")
    redis.setex.assert_awaited_once_with("feed:f1:likeCount", 600, "7")
    redis.delete.assert_awaited_once_with("feed:f1:likeCount", "feed:f1:commentCount")


@pytest.mark.asyncio
async def test_redis_cache_delete_without_keys_is_noop():
    redis = AsyncMock()
    await RedisCountCache(redis).delete()
    redis.delete.assert_not_awaited()
