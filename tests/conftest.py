"""Shared fixtures: a real SQLAlchemy store on SQLite and in-memory cache doubles."""
from typing import Optional, Union

import pytest
import pytest_asyncio

from feed_service.config import Settings
from feed_service.database import create_engine, create_session_factory, init_db
from feed_service.service import FeedService
from feed_service.store import SqlAlchemyFeedStore


class InMemoryCountCache:
    """Dict-backed CountCache that records every call."""

    def __init__(self):
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int] = {}
        self.calls: list[tuple] = []

    async def get(self, key: str) -> Optional[str]:
        self.calls.append(("get", key))
        return self.data.get(key)

    async def set_with_expiry(self, key: str, ttl_seconds: int, value: Union[int, str]) -> None:
        self.calls.append(("setex", key, ttl_seconds, value))
        self.data[key] = str(value)
        self.ttls[key] = ttl_seconds

    async def delete(self, *keys: str) -> None:
        self.calls.append(("delete",) + keys)
        for key in keys:
            self.data.pop(key, None)
            self.ttls.pop(key, None)


class BrokenCountCache(InMemoryCountCache):
    """Reads work, every write raises."""

    async def set_with_expiry(self, key, ttl_seconds, value):  # noqa: ANN001
        raise ConnectionError("redis write refused")

    async def delete(self, *keys):  # noqa: ANN001
        raise ConnectionError("redis write refused")


class CountingFeedStore(SqlAlchemyFeedStore):
    """Real store that counts how often the aggregate queries run."""

    def __init__(self, session_factory):  # noqa: ANN001
        super().__init__(session_factory)
        self.count_likes_calls = 0
        self.count_comments_calls = 0
        self.get_feed_calls = 0

    async def get_feed(self, feed_id):  # noqa: ANN001
        self.get_feed_calls += 1
        return await super().get_feed(feed_id)

    async def count_likes(self, feed_id):  # noqa: ANN001
        self.count_likes_calls += 1
        return await super().count_likes(feed_id)

    async def count_comments(self, feed_id):  # noqa: ANN001
        self.count_comments_calls += 1
        return await super().count_comments(feed_id)


@pytest_asyncio.fixture
async def engine(tmp_path):
    settings = Settings(database_url=f"sqlite+aiosqlite:///{tmp_path}/feeds.db", tracing_enabled=False)
    engine = create_engine(settings)
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def store(engine) -> CountingFeedStore:
    return CountingFeedStore(create_session_factory(engine))


@pytest.fixture
def cache() -> InMemoryCountCache:
    return InMemoryCountCache()


@pytest.fixture
def service(store, cache) -> FeedService:
    return FeedService(store=store, cache=cache, count_ttl=600)
