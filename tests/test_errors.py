import pytest

from feed_service.errors import (
    AlreadyLiked,
    FeedServiceError,
    InvariantViolation,
    NotFound,
    NotLiked,
    PermissionDenied,
    PersistenceError,
)


@pytest.mark.parametrize(
    "error_cls, status",
    [
        (NotFound, 404),
        (PermissionDenied, 403),
        (InvariantViolation, 409),
        (AlreadyLiked, 409),
        (NotLiked, 409),
        (PersistenceError, 500),
    ],
)
def test_error_kinds_carry_status_and_message(error_cls, status):
    exc = error_cls("boom")
    assert isinstance(exc, FeedServiceError)
    assert exc.http_status == status
    assert exc.message == "boom"
    assert str(exc) == "boom"
    assert exc.kind == error_cls.__name__
