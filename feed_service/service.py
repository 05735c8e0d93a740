"""
Feed content service: feed posts, their images, per-user likes, and the cached
like/comment counters.

Write path (update / delete / like / unlike / create):
  1. Load the feed from the store and apply the authorization gate
     (only the author may mutate a feed; anyone may like it).
  2. Mutate the store.
  3. Invalidate the affected counter keys. Invalidation is best-effort:
     a cache failure is logged and counted, never surfaced to the caller.

Read path for counters (cache-aside):
  1. Cache hit → return it without touching the store.
  2. Miss → verify the feed exists, count from the store, SETEX the result
     with the configured TTL (best-effort), return it.

A populate racing an invalidation can leave a stale counter cached; that window
is bounded by the TTL.
"""
import functools
import logging
from typing import Awaitable, Callable, Optional, Sequence

from opentelemetry import trace

from feed_service.cache import CountCache, comment_count_key, count_keys, like_count_key
from feed_service.errors import (
    AlreadyLiked,
    FeedServiceError,
    InvariantViolation,
    NotFound,
    NotLiked,
    PermissionDenied,
    PersistenceError,
)
from feed_service.schemas import FeedCounts, FeedImageRead, FeedRead
from feed_service.store import FeedStore, ImageDeleteOutcome
from feed_service.telemetry import (
    COUNT_CACHE_REQUESTS,
    COUNT_CACHE_WRITE_FAILURES,
    SERVICE_ERRORS,
)

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

DEFAULT_COUNT_TTL = 600    # seconds a cached counter may be served
MIN_FEED_IMAGES = 1        # a feed with images keeps at least this many


def service_action(action: str):
    """
    Wrap a public FeedService coroutine in a span and a uniform failure policy.

    Business-rule errors keep their kind and are re-raised as is. Anything else
    (driver, network, malformed data) becomes PersistenceError carrying the
    original message. Every failure is logged as "Error <action>: <message>".
    """

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            with tracer.start_as_current_span(f"feed_service.{func.__name__}"):
                try:
                    return await func(*args, **kwargs)
                except PersistenceError as exc:
                    logger.error("Error %s: %s", action, exc.message)
                    SERVICE_ERRORS.labels(action=action, kind=exc.kind).inc()
                    raise
                except FeedServiceError as exc:
                    logger.warning("Error %s: %s", action, exc.message)
                    SERVICE_ERRORS.labels(action=action, kind=exc.kind).inc()
                    raise
                except Exception as exc:
                    logger.exception("Error %s: %s", action, exc)
                    SERVICE_ERRORS.labels(action=action, kind=PersistenceError.__name__).inc()
                    raise PersistenceError(str(exc)) from exc

        return wrapper

    return decorator


def _normalize_id(feed_id: Optional[str]) -> str:
    feed_id = (feed_id or "").strip()
    if not feed_id:
        raise NotFound("Feed not found")
    return feed_id


def _parse_count(raw) -> Optional[int]:  # noqa: ANN001
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        logger.warning("Ignoring malformed cached counter value %r", raw)
        return None


class FeedService:
    def __init__(self, store: FeedStore, cache: CountCache, count_ttl: int = DEFAULT_COUNT_TTL):
        self._store = store
        self._cache = cache
        self._count_ttl = count_ttl

    @property
    def store(self) -> FeedStore:
        return self._store

    # ─────────────────────────── Helpers ──────────────────────────────────

    async def _load_feed(self, feed_id: str) -> FeedRead:
        feed = await self._store.get_feed(feed_id)
        if feed is None:
            raise NotFound("Feed not found")
        return feed

    async def _authorize(self, feed_id: str, acting_id: str) -> FeedRead:
        feed = await self._load_feed(feed_id)
        if feed.author_id != acting_id:
            raise PermissionDenied("Permission denied")
        return feed

    async def _invalidate(self, *keys: str) -> None:
        try:
            await self._cache.delete(*keys)
        except Exception as exc:
            logger.warning("Cache invalidation failed for %s: %s", ", ".join(keys), exc)
            COUNT_CACHE_WRITE_FAILURES.labels(operation="invalidate").inc()

    async def _populate(self, key: str, value: int) -> None:
        try:
            await self._cache.set_with_expiry(key, self._count_ttl, value)
        except Exception as exc:
            logger.warning("Cache populate failed for %s: %s", key, exc)
            COUNT_CACHE_WRITE_FAILURES.labels(operation="populate").inc()

    async def _cached_count(
        self,
        feed_id: str,
        counter: str,
        key: str,
        compute: Callable[[str], Awaitable[int]],
    ) -> int:
        # A hit is trusted without checking the feed still exists
        cached = _parse_count(await self._cache.get(key))
        if cached is not None:
            COUNT_CACHE_REQUESTS.labels(counter=counter, result="hit").inc()
            return cached

        COUNT_CACHE_REQUESTS.labels(counter=counter, result="miss").inc()
        await self._load_feed(feed_id)
        count = await compute(feed_id)
        await self._populate(key, count)
        return count

    async def _like_count(self, feed_id: str) -> int:
        return await self._cached_count(
            feed_id, "like", like_count_key(feed_id), self._store.count_likes
        )

    async def _comment_count(self, feed_id: str) -> int:
        return await self._cached_count(
            feed_id, "comment", comment_count_key(feed_id), self._store.count_comments
        )

    # ─────────────────────────── Feeds ────────────────────────────────────

    @service_action("creating feed")
    async def create_feed(
        self,
        author_id: str,
        description: Optional[str],
        image_urls: Optional[Sequence[str]] = None,
    ) -> str:
        if not author_id:
            raise InvariantViolation("Author id is required")

        feed_id = await self._store.create_feed(author_id, description, list(image_urls or ()))

        # Drop anything left behind under a reused id
        await self._invalidate(*count_keys(feed_id))
        logger.info("Feed created: %s by %s (%d images)", feed_id, author_id, len(image_urls or []))
        return feed_id

    @service_action("retrieving feed")
    async def get_feed_by_id(self, feed_id: str) -> FeedRead:
        """Return the feed or raise NotFound; feed content itself is never cached."""
        return await self._load_feed(_normalize_id(feed_id))

    @service_action("retrieving feeds")
    async def get_all_feeds(self) -> list[FeedRead]:
        return await self._store.list_feeds()

    @service_action("updating feed")
    async def update_feed(self, feed_id: str, acting_id: str, description: Optional[str]) -> FeedRead:
        feed_id = _normalize_id(feed_id)
        trace.get_current_span().set_attribute("feed.id", feed_id)
        await self._authorize(feed_id, acting_id)

        updated = await self._store.update_feed(feed_id, description)
        if updated is None:
            # deleted between the gate and the write
            raise NotFound("Feed not found")
        await self._invalidate(*count_keys(feed_id))
        return updated

    @service_action("deleting feed")
    async def delete_feed(self, feed_id: str, acting_id: str) -> bool:
        feed_id = _normalize_id(feed_id)
        trace.get_current_span().set_attribute("feed.id", feed_id)
        await self._authorize(feed_id, acting_id)

        if not await self._store.delete_feed(feed_id):
            raise NotFound("Feed not found")
        await self._invalidate(*count_keys(feed_id))
        logger.info("Feed deleted: %s by %s", feed_id, acting_id)
        return True

    # ─────────────────────────── Images ───────────────────────────────────

    @service_action("adding feed images")
    async def add_feed_images(
        self, acting_id: str, feed_id: str, image_urls: Sequence[str]
    ) -> list[FeedImageRead]:
        feed_id = _normalize_id(feed_id)
        await self._authorize(feed_id, acting_id)
        if not image_urls:
            return []
        return await self._store.add_feed_images(feed_id, list(image_urls))

    @service_action("updating feed image")
    async def update_feed_image(
        self, acting_id: str, feed_id: str, image_id: str, image_url: str
    ) -> FeedImageRead:
        feed_id = _normalize_id(feed_id)
        await self._authorize(feed_id, acting_id)

        image = await self._store.update_feed_image(feed_id, image_id, image_url)
        if image is None:
            raise NotFound("Feed image not found")
        return image

    @service_action("deleting feed image")
    async def delete_feed_image(self, acting_id: str, feed_id: str, image_id: str) -> bool:
        """
        Delete one image of a feed, refusing to remove its last one.

        The count check here gives the common case a clear answer; the store's
        guarded delete repeats it under a row lock, so concurrent deletions
        cannot both pass and empty the feed.
        """
        feed_id = _normalize_id(feed_id)
        await self._authorize(feed_id, acting_id)

        image_count = await self._store.count_feed_images(feed_id)
        if image_count <= MIN_FEED_IMAGES:
            raise InvariantViolation("Can't delete last image, need at least one image")

        outcome = await self._store.delete_feed_image(feed_id, image_id, min_remaining=MIN_FEED_IMAGES)
        if outcome is ImageDeleteOutcome.LAST_IMAGE:
            raise InvariantViolation("Can't delete last image, need at least one image")
        if outcome is ImageDeleteOutcome.NOT_FOUND:
            raise NotFound("Feed image not found")
        return True

    # ─────────────────────────── Likes ────────────────────────────────────

    @service_action("liking feed")
    async def like_feed(self, user_id: str, feed_id: str) -> bool:
        """NOT_LIKED → LIKED. Liking twice is an error, not a no-op."""
        feed_id = _normalize_id(feed_id)
        trace.get_current_span().set_attribute("feed.id", feed_id)
        trace.get_current_span().set_attribute("user.id", user_id)
        await self._load_feed(feed_id)

        if await self._store.has_like(user_id, feed_id):
            raise AlreadyLiked("Already liked this feed")
        # Unique (user, feed) key catches a concurrent like that won the race
        if not await self._store.add_like(user_id, feed_id):
            raise AlreadyLiked("Already liked this feed")

        await self._invalidate(like_count_key(feed_id))
        return True

    @service_action("unliking feed")
    async def unlike_feed(self, user_id: str, feed_id: str) -> bool:
        """LIKED → NOT_LIKED. Unliking a feed that isn't liked is an error."""
        feed_id = _normalize_id(feed_id)
        trace.get_current_span().set_attribute("feed.id", feed_id)
        trace.get_current_span().set_attribute("user.id", user_id)
        await self._load_feed(feed_id)

        if not await self._store.has_like(user_id, feed_id):
            raise NotLiked("Not liked this feed before, cannot unlike")
        if not await self._store.remove_like(user_id, feed_id):
            raise NotLiked("Not liked this feed before, cannot unlike")

        await self._invalidate(like_count_key(feed_id))
        return True

    @service_action("checking like status")
    async def check_like_status(self, user_id: str, feed_id: str) -> bool:
        feed_id = _normalize_id(feed_id)
        await self._load_feed(feed_id)
        return await self._store.has_like(user_id, feed_id)

    # ─────────────────────────── Counters ─────────────────────────────────

    @service_action("getting like count")
    async def get_like_count(self, feed_id: str) -> int:
        return await self._like_count(_normalize_id(feed_id))

    @service_action("getting comment count")
    async def get_comment_count(self, feed_id: str) -> int:
        return await self._comment_count(_normalize_id(feed_id))

    @service_action("getting feed counts")
    async def get_feed_counts(self, feed_id: str) -> FeedCounts:
        feed_id = _normalize_id(feed_id)
        return FeedCounts(
            feed_id=feed_id,
            like_count=await self._like_count(feed_id),
            comment_count=await self._comment_count(feed_id),
        )
