"""
Error kinds raised by FeedService.

Every failure leaving the service is one of these classes, so callers branch on
the type (and map `http_status` at the transport boundary) instead of parsing
messages.
"""


class FeedServiceError(Exception):
    http_status: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def kind(self) -> str:
        return type(self).__name__


class NotFound(FeedServiceError):
    """Referenced feed or image does not exist."""

    http_status = 404


class PermissionDenied(FeedServiceError):
    """Acting user is not the feed's author."""

    http_status = 403


class InvariantViolation(FeedServiceError):
    """Operation would break a data invariant (e.g. removing the last image)."""

    http_status = 409


class AlreadyLiked(FeedServiceError):
    http_status = 409


class NotLiked(FeedServiceError):
    http_status = 409


class PersistenceError(FeedServiceError):
    """Store or cache call failed."""

    http_status = 500
