"""
Pydantic read models returned by the feed service.
Kept separate from ORM models so callers never hold a live session object.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class FeedImageRead(BaseModel):
    image_id: str
    feed_id: str
    image_url: str
    position: int
    created_at: datetime

    class Config:
        from_attributes = True


class FeedRead(BaseModel):
    feed_id: str
    author_id: str
    description: Optional[str]
    created_at: datetime
    updated_at: Optional[datetime] = None
    images: list[FeedImageRead] = []

    class Config:
        from_attributes = True


class FeedCounts(BaseModel):
    feed_id: str
    like_count: int
    comment_count: int
