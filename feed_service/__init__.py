from feed_service.errors import (
    AlreadyLiked,
    FeedServiceError,
    InvariantViolation,
    NotFound,
    NotLiked,
    PermissionDenied,
    PersistenceError,
)
from feed_service.service import FeedService

__all__ = [
    "AlreadyLiked",
    "FeedService",
    "FeedServiceError",
    "InvariantViolation",
    "NotFound",
    "NotLiked",
    "PermissionDenied",
    "PersistenceError",
]
