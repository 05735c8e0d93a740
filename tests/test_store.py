import pytest
from sqlalchemy.exc import IntegrityError

from feed_service.store import ImageDeleteOutcome


@pytest.mark.asyncio
async def test_create_and_get_feed_with_ordered_images(store):
    feed_id = await store.create_feed("uid-1", "hello", ["a.jpg", "b.jpg", "c.jpg"])

    feed = await store.get_feed(feed_id)
    assert feed is not None
    assert feed.author_id == "uid-1"
    assert feed.description == "hello"
    assert [img.image_url for img in feed.images] == ["a.jpg", "b.jpg", "c.jpg"]
    assert [img.position for img in feed.images] == [0, 1, 2]
    assert await store.count_feed_images(feed_id) == 3


@pytest.mark.asyncio
async def test_get_missing_feed_returns_none(store):
    assert await store.get_feed("does-not-exist") is None
    assert await store.update_feed("does-not-exist", "x") is None
    assert await store.delete_feed("does-not-exist") is False


@pytest.mark.asyncio
async def test_appended_images_continue_after_last_position(store):
    feed_id = await store.create_feed("uid-1", "hello")
    await store.add_feed_images(feed_id, ["a.jpg"])
    added = await store.add_feed_images(feed_id, ["b.jpg", "c.jpg"])

    assert [img.position for img in added] == [1, 2]
    assert all(img.feed_id == feed_id for img in added)
    assert await store.add_feed_images(feed_id, []) == []


@pytest.mark.asyncio
async def test_update_feed_sets_description_and_timestamp(store):
    feed_id = await store.create_feed("uid-1", "before")
    updated = await store.update_feed(feed_id, "after")

    assert updated.description == "after"
    assert updated.updated_at is not None
    assert (await store.get_feed(feed_id)).description == "after"


@pytest.mark.asyncio
async def test_list_feeds_returns_every_feed(store):
    ids = {await store.create_feed("uid-1", f"feed {i}") for i in range(3)}
    feeds = await store.list_feeds()
    assert {feed.feed_id for feed in feeds} == ids


@pytest.mark.asyncio
async def test_update_feed_image_scoped_to_feed(store):
    feed_id = await store.create_feed("uid-1", "hello")
    other_id = await store.create_feed("uid-1", "other")
    [image] = await store.add_feed_images(feed_id, ["a.jpg"])

    updated = await store.update_feed_image(feed_id, image.image_id, "z.jpg")
    assert updated.image_url == "z.jpg"
    assert await store.update_feed_image(other_id, image.image_id, "y.jpg") is None
    assert (await store.get_feed(feed_id)).images[0].image_url == "z.jpg"


@pytest.mark.asyncio
async def test_guarded_image_delete_keeps_last_image(store):
    feed_id = await store.create_feed("uid-1", "hello")
    first, second = await store.add_feed_images(feed_id, ["a.jpg", "b.jpg"])

    assert await store.delete_feed_image(feed_id, first.image_id) is ImageDeleteOutcome.DELETED
    assert await store.delete_feed_image(feed_id, second.image_id) is ImageDeleteOutcome.LAST_IMAGE
    assert await store.delete_feed_image(feed_id, first.image_id) is ImageDeleteOutcome.NOT_FOUND
    assert await store.delete_feed_image("missing", second.image_id) is ImageDeleteOutcome.NOT_FOUND
    assert await store.count_feed_images(feed_id) == 1


@pytest.mark.asyncio
async def test_like_pair_is_unique(store):
    feed_id = await store.create_feed("uid-1", "hello")

    assert await store.add_like("uid-2", feed_id) is True
    assert await store.add_like("uid-2", feed_id) is False
    assert await store.has_like("uid-2", feed_id) is True
    assert await store.count_likes(feed_id) == 1

    assert await store.remove_like("uid-2", feed_id) is True
    assert await store.remove_like("uid-2", feed_id) is False
    assert await store.has_like("uid-2", feed_id) is False
    assert await store.count_likes(feed_id) == 0


@pytest.mark.asyncio
async def test_delete_feed_removes_images_likes_and_comments(store):
    feed_id = await store.create_feed("uid-1", "hello")
    await store.add_feed_images(feed_id, ["a.jpg", "b.jpg"])
    await store.add_like("uid-2", feed_id)
    await store.add_comment(feed_id, "uid-3", "nice")
    assert await store.count_comments(feed_id) == 1

    assert await store.delete_feed(feed_id) is True

    assert await store.get_feed(feed_id) is None
    assert await store.count_feed_images(feed_id) == 0
    assert await store.count_likes(feed_id) == 0
    assert await store.count_comments(feed_id) == 0


@pytest.mark.asyncio
async def test_create_feed_is_all_or_nothing(store):
    # NOT NULL image_url fails the image insert inside the feed's transaction
    with pytest.raises(IntegrityError):
        await store.create_feed("uid-1", "hello", ["a.jpg", None])

    assert await store.list_feeds() == []
