#!/usr/bin/env python3
"""
Seed script — creates a realistic dataset for exercising the feed service.

Creates:
  • 3 feeds per author (6 authors), each with 1-3 images
  • Some likes across feeds
  • A few comments per feed (written straight to the store)

Run against the configured database and Redis (see feed_service/config.py):
  python scripts/seed_data.py --authors 6 --feeds-per-author 3

All IDs are printed so you can poke at them afterwards.
"""
import argparse
import asyncio
import random

from feed_service.main import configure_logging, feed_service_context

BASE_AUTHORS = [
    "uid_alice_ai",
    "uid_bob_builder",
    "uid_carol_codes",
    "uid_dave_designs",
    "uid_eve_engineer",
    "uid_frank_feeds",
]

SAMPLE_DESCRIPTIONS = [
    "Sunset from the rooftop after a long deploy day.",
    "First attempt at sourdough. The crumb is not bad!",
    "Team offsite — whiteboards everywhere.",
    "Morning run along the river, 10k done.",
    "New mechanical keyboard arrived. Tactile heaven.",
    "Cat supervising my code review again.",
    "Coffee shop office for the afternoon.",
    "Weekend hike, views worth every step.",
]

SAMPLE_COMMENTS = ["Love this!", "Where is this?", "So good 😍", "Nice shot", "Same here"]


def _image_urls(count: int) -> list[str]:
    return [f"https://cdn.example.com/feeds/{random.getrandbits(48):012x}.jpg" for _ in range(count)]


async def seed(authors: list[str], feeds_per_author: int) -> None:
    async with feed_service_context() as service:
        # ── Create feeds ──────────────────────────────────────────────────
        print("Creating feeds...")
        feed_ids: list[str] = []
        for author_id in authors:
            for _ in range(feeds_per_author):
                feed_id = await service.create_feed(
                    author_id,
                    random.choice(SAMPLE_DESCRIPTIONS),
                    _image_urls(random.randint(1, 3)),
                )
                feed_ids.append(feed_id)
        print(f"  ✓ {len(feed_ids)} feeds created")

        # ── Create some likes ─────────────────────────────────────────────
        print("\nAdding likes...")
        likes = 0
        for feed_id in feed_ids:
            for user_id in random.sample(authors, k=random.randint(0, len(authors))):
                await service.like_feed(user_id, feed_id)
                likes += 1
        print(f"  ✓ {likes} likes added")

        # ── Create some comments ──────────────────────────────────────────
        print("\nAdding comments...")
        comments = 0
        store = service.store
        for feed_id in feed_ids:
            for _ in range(random.randint(0, 4)):
                await store.add_comment(feed_id, random.choice(authors), random.choice(SAMPLE_COMMENTS))
                comments += 1
        print(f"  ✓ {comments} comments added")

        # ── Print summary ─────────────────────────────────────────────────
        print("\n" + "=" * 60)
        print("Seed complete! Counters (first read populates the cache):\n")
        for feed_id in feed_ids[:5]:
            counts = await service.get_feed_counts(feed_id)
            print(f"  {feed_id}  likes={counts.like_count}  comments={counts.comment_count}")
        print("=" * 60)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the feed service")
    parser.add_argument("--authors", type=int, default=len(BASE_AUTHORS), help="Number of authors")
    parser.add_argument("--feeds-per-author", type=int, default=3, help="Feeds created per author")
    args = parser.parse_args()

    configure_logging()
    asyncio.run(seed(BASE_AUTHORS[: args.authors], args.feeds_per_author))
