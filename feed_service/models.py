"""
SQLAlchemy ORM models for the feed store.

Tables:
  feeds         — feed post metadata (author + description)
  feed_images   — ordered image references attached to a feed
  feed_likes    — user × feed like pairs (primary key forbids duplicates)
  feed_comments — comments; only their count is consumed here
"""
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from feed_service.database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


class Feed(Base):
    __tablename__ = "feeds"

    feed_id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    # Verified identity of the author (e.g. an auth provider uid)
    author_id: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime)

    images = relationship(
        "FeedImage",
        back_populates="feed",
        order_by="FeedImage.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        Index("idx_feeds_author", "author_id"),
        Index("idx_feeds_created", "created_at"),
    )


class FeedImage(Base):
    __tablename__ = "feed_images"

    image_id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    feed_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("feeds.feed_id", ondelete="CASCADE"), nullable=False
    )
    image_url: Mapped[str] = mapped_column(String(1024), nullable=False)
    # Display order within the feed, 0-based
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )

    feed = relationship("Feed", back_populates="images")

    __table_args__ = (Index("idx_feed_images_feed", "feed_id", "position"),)


class FeedLike(Base):
    __tablename__ = "feed_likes"

    user_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    feed_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("feeds.feed_id", ondelete="CASCADE"), primary_key=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )

    __table_args__ = (Index("idx_feed_likes_feed", "feed_id"),)


class FeedComment(Base):
    __tablename__ = "feed_comments"

    comment_id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    feed_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("feeds.feed_id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )

    __table_args__ = (Index("idx_feed_comments_feed", "feed_id"),)
