"""Redis access for the Postgres-backed deployment.

Redis carries two things here:

* ``docs:{collection}`` pub/sub channels. A committed document write
  publishes the document id; every worker with a live subscription on that
  collection re-runs its query and pushes a fresh snapshot.
* the persistent tier of TimedCache (``cache:{namespace}:{key}``).
"""

import redis.asyncio as aioredis
from redis.asyncio.client import PubSub

from config.settings import settings

CHANGE_CHANNEL_PREFIX = "docs:"

_client: aioredis.Redis | None = None


def change_channel(collection: str) -> str:
    return f"{CHANGE_CHANNEL_PREFIX}{collection}"


async def get_redis() -> aioredis.Redis:
    global _client  # noqa: PLW0603
    if _client is None:
        _client = aioredis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            health_check_interval=30,
        )
    return _client


async def publish_change(collection: str, doc_id: str) -> int:
    """Announce a committed write. Returns how many subscribers received it."""
    client = await get_redis()
    return int(await client.publish(change_channel(collection), doc_id))


async def open_change_feed(collection: str) -> PubSub:
    """PubSub already subscribed to the collection's change channel.

    The caller owns it and must pass it to close_change_feed.
    """
    client = await get_redis()
    pubsub = client.pubsub(ignore_subscribe_messages=True)
    await pubsub.subscribe(change_channel(collection))
    return pubsub


async def close_change_feed(pubsub: PubSub, collection: str) -> None:
    try:
        await pubsub.unsubscribe(change_channel(collection))
    finally:
        await pubsub.aclose()


async def ping_redis() -> None:
    await (await get_redis()).ping()


async def close_redis() -> None:
    global _client  # noqa: PLW0603
    if _client is not None:
        await _client.aclose()
        _client = None
