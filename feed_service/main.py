"""
Feed service — process wiring.

Startup sequence:
  1. Build the DB engine (TiDB) and create tables if not present
  2. Configure OTel tracing (→ Jaeger via OTLP) with SQLAlchemy/Redis spans
  3. Connect to Redis
  4. Hand a FeedService to the caller

The transport layer (HTTP, RPC) opens one context for the life of the process.
"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from feed_service.cache import RedisCountCache, init_redis
from feed_service.config import Settings
from feed_service.config import settings as default_settings
from feed_service.database import create_engine, create_session_factory, init_db
from feed_service.service import FeedService
from feed_service.store import SqlAlchemyFeedStore
from feed_service.telemetry import setup_tracing

logger = logging.getLogger(__name__)


def configure_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s — %(message)s",
    )


@asynccontextmanager
async def feed_service_context(settings: Optional[Settings] = None) -> AsyncIterator[FeedService]:
    """Manage startup and shutdown of the store and cache connections."""
    settings = settings or default_settings
    logger.info("Starting feed service (env=%s)", settings.environment)

    engine = create_engine(settings)
    setup_tracing(settings, engine)
    redis = None
    try:
        await init_db(engine)
        redis = await init_redis(settings)

        service = FeedService(
            store=SqlAlchemyFeedStore(create_session_factory(engine)),
            cache=RedisCountCache(redis),
            count_ttl=settings.feed_count_cache_ttl,
        )
        logger.info("Store and cache connected. Feed service ready.")
        yield service
    finally:
        logger.info("Shutting down...")
        if redis is not None:
            await redis.aclose()
        await engine.dispose()
