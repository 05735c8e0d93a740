"""
Durable feed store backed by async SQLAlchemy.

FeedService only depends on the FeedStore protocol; SqlAlchemyFeedStore is the
production implementation. Every method opens its own session and commits its
own transaction. Operations whose outcome depends on current state (like pairs,
the last-image floor) are guarded inside the database transaction so two
concurrent callers cannot both succeed.
"""
import enum
import logging
from datetime import datetime, timezone
from typing import Optional, Protocol, Sequence

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from feed_service.models import Feed, FeedComment, FeedImage, FeedLike
from feed_service.schemas import FeedImageRead, FeedRead

logger = logging.getLogger(__name__)


class ImageDeleteOutcome(enum.Enum):
    DELETED = "deleted"
    NOT_FOUND = "not_found"
    LAST_IMAGE = "last_image"


class FeedStore(Protocol):
    async def create_feed(
        self, author_id: str, description: Optional[str], image_urls: Sequence[str] = ()
    ) -> str: ...

    async def get_feed(self, feed_id: str) -> Optional[FeedRead]: ...

    async def list_feeds(self) -> list[FeedRead]: ...

    async def update_feed(self, feed_id: str, description: Optional[str]) -> Optional[FeedRead]: ...

    async def delete_feed(self, feed_id: str) -> bool: ...

    async def add_feed_images(self, feed_id: str, image_urls: Sequence[str]) -> list[FeedImageRead]: ...

    async def update_feed_image(
        self, feed_id: str, image_id: str, image_url: str
    ) -> Optional[FeedImageRead]: ...

    async def delete_feed_image(
        self, feed_id: str, image_id: str, min_remaining: int = 1
    ) -> ImageDeleteOutcome: ...

    async def count_feed_images(self, feed_id: str) -> int: ...

    async def add_like(self, user_id: str, feed_id: str) -> bool: ...

    async def remove_like(self, user_id: str, feed_id: str) -> bool: ...

    async def has_like(self, user_id: str, feed_id: str) -> bool: ...

    async def count_likes(self, feed_id: str) -> int: ...

    async def count_comments(self, feed_id: str) -> int: ...


def _utcnow() -> datetime:
    # Columns are naive DATETIME in UTC
    return datetime.now(timezone.utc).replace(tzinfo=None)


class SqlAlchemyFeedStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    # ─────────────────────────── Feeds ────────────────────────────────────

    async def create_feed(
        self, author_id: str, description: Optional[str], image_urls: Sequence[str] = ()
    ) -> str:
        """Insert the feed and its initial images in one transaction."""
        async with self._session_factory() as session:
            feed = Feed(author_id=author_id, description=description)
            feed.images = [
                FeedImage(image_url=url, position=position)
                for position, url in enumerate(image_urls)
            ]
            session.add(feed)
            await session.commit()
            logger.debug("Feed row created: %s", feed.feed_id)
            return feed.feed_id

    async def get_feed(self, feed_id: str) -> Optional[FeedRead]:
        async with self._session_factory() as session:
            feed = await session.get(Feed, feed_id)
            if feed is None:
                return None
            return FeedRead.model_validate(feed)

    async def list_feeds(self) -> list[FeedRead]:
        async with self._session_factory() as session:
            rows = await session.scalars(
                select(Feed).order_by(Feed.created_at.desc(), Feed.feed_id)
            )
            return [FeedRead.model_validate(feed) for feed in rows.all()]

    async def update_feed(self, feed_id: str, description: Optional[str]) -> Optional[FeedRead]:
        async with self._session_factory() as session:
            feed = await session.get(Feed, feed_id)
            if feed is None:
                return None
            feed.description = description
            feed.updated_at = _utcnow()
            await session.commit()
            return FeedRead.model_validate(feed)

    async def delete_feed(self, feed_id: str) -> bool:
        """Delete a feed together with its images, likes and comments."""
        async with self._session_factory() as session:
            async with session.begin():
                feed = await session.get(Feed, feed_id)
                if feed is None:
                    return False
                await session.execute(delete(FeedLike).where(FeedLike.feed_id == feed_id))
                await session.execute(delete(FeedComment).where(FeedComment.feed_id == feed_id))
                # images go through the relationship cascade
                await session.delete(feed)
            return True

    # ─────────────────────────── Images ───────────────────────────────────

    async def add_feed_images(self, feed_id: str, image_urls: Sequence[str]) -> list[FeedImageRead]:
        """Append images after the feed's current last position, keeping input order."""
        if not image_urls:
            return []
        async with self._session_factory() as session:
            last_position = await session.scalar(
                select(func.max(FeedImage.position)).where(FeedImage.feed_id == feed_id)
            )
            start = 0 if last_position is None else last_position + 1
            images = [
                FeedImage(feed_id=feed_id, image_url=url, position=start + offset)
                for offset, url in enumerate(image_urls)
            ]
            session.add_all(images)
            await session.flush()
            for image in images:
                await session.refresh(image)  # load server-generated created_at
            result = [FeedImageRead.model_validate(image) for image in images]
            await session.commit()
            return result

    async def update_feed_image(
        self, feed_id: str, image_id: str, image_url: str
    ) -> Optional[FeedImageRead]:
        async with self._session_factory() as session:
            image = await self._find_image(session, feed_id, image_id)
            if image is None:
                return None
            image.image_url = image_url
            await session.commit()
            return FeedImageRead.model_validate(image)

    async def delete_feed_image(
        self, feed_id: str, image_id: str, min_remaining: int = 1
    ) -> ImageDeleteOutcome:
        """
        Delete one image unless that would leave the feed with fewer than
        `min_remaining` images.

        The feed row is locked (SELECT … FOR UPDATE) for the duration of the
        count-and-delete, so concurrent deletions on the same feed serialise.
        """
        async with self._session_factory() as session:
            async with session.begin():
                locked = await session.scalar(
                    select(Feed.feed_id).where(Feed.feed_id == feed_id).with_for_update()
                )
                if locked is None:
                    return ImageDeleteOutcome.NOT_FOUND
                image = await self._find_image(session, feed_id, image_id)
                if image is None:
                    return ImageDeleteOutcome.NOT_FOUND
                count = await self._count_images(session, feed_id)
                if count <= min_remaining:
                    return ImageDeleteOutcome.LAST_IMAGE
                await session.delete(image)
            return ImageDeleteOutcome.DELETED

    async def count_feed_images(self, feed_id: str) -> int:
        async with self._session_factory() as session:
            return await self._count_images(session, feed_id)

    @staticmethod
    async def _find_image(session: AsyncSession, feed_id: str, image_id: str) -> Optional[FeedImage]:
        return await session.scalar(
            select(FeedImage).where(
                FeedImage.image_id == image_id, FeedImage.feed_id == feed_id
            )
        )

    @staticmethod
    async def _count_images(session: AsyncSession, feed_id: str) -> int:
        count = await session.scalar(
            select(func.count()).select_from(FeedImage).where(FeedImage.feed_id == feed_id)
        )
        return int(count or 0)

    # ─────────────────────────── Likes ────────────────────────────────────

    async def add_like(self, user_id: str, feed_id: str) -> bool:
        """Insert the like pair; False if it already exists."""
        async with self._session_factory() as session:
            session.add(FeedLike(user_id=user_id, feed_id=feed_id))
            try:
                await session.commit()
            except IntegrityError:
                await session.rollback()
                return False
            return True

    async def remove_like(self, user_id: str, feed_id: str) -> bool:
        """Delete the like pair; False if there was nothing to delete."""
        async with self._session_factory() as session:
            result = await session.execute(
                delete(FeedLike).where(
                    FeedLike.user_id == user_id, FeedLike.feed_id == feed_id
                )
            )
            await session.commit()
            return result.rowcount > 0

    async def has_like(self, user_id: str, feed_id: str) -> bool:
        async with self._session_factory() as session:
            return await session.get(FeedLike, (user_id, feed_id)) is not None

    async def count_likes(self, feed_id: str) -> int:
        async with self._session_factory() as session:
            count = await session.scalar(
                select(func.count()).select_from(FeedLike).where(FeedLike.feed_id == feed_id)
            )
            return int(count or 0)

    # ─────────────────────────── Comments ─────────────────────────────────

    async def add_comment(self, feed_id: str, user_id: str, content: str) -> str:
        """Comments are written by the comment service; used for seeding only."""
        async with self._session_factory() as session:
            comment = FeedComment(feed_id=feed_id, user_id=user_id, content=content)
            session.add(comment)
            await session.commit()
            return comment.comment_id

    async def count_comments(self, feed_id: str) -> int:
        async with self._session_factory() as session:
            count = await session.scalar(
                select(func.count()).select_from(FeedComment).where(FeedComment.feed_id == feed_id)
            )
            return int(count or 0)
