"""Broadcast channel — fan-out of created records to every subscriber.

Learn: Two interchangeable backends share one small interface:

  await broadcaster.publish(event_type, record)
  async with broadcaster.subscribe() as sub:
      async for message in sub: ...

RedisBroadcaster uses Redis pub/sub on one channel per app namespace
(grindlink:events:{app_id}), so several API processes can share
subscribers. LocalBroadcaster keeps an asyncio.Queue per subscriber and
is enough for a single process (and for tests).

Both are at-most-once with no replay. Within one process, a subscriber
sees events in publish order.
"""

import asyncio
import json
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

import redis.asyncio as aioredis
from redis.asyncio.client import PubSub
import structlog
from redis.exceptions import RedisError

from grindlink.config import Settings

logger = structlog.get_logger()


def make_message(event_type: str, record: dict[str, Any]) -> dict[str, Any]:
    """Wire frame for one event. `data` is the record, untouched."""
    return {"type": event_type, "data": record}


class Subscription:
    """Async iterator over broadcast messages for one subscriber."""

    def __aiter__(self) -> "Subscription":
        return self

    async def __anext__(self) -> dict[str, Any]:
        return await self.get()

    async def get(self) -> dict[str, Any]:
        raise NotImplementedError


class Broadcaster:
    """Interface shared by both backends."""

    backend = "none"

    async def publish(self, event_type: str, record: dict[str, Any]) -> None:
        raise NotImplementedError

    def subscribe(self):
        raise NotImplementedError

    async def ping(self) -> None:
        return None

    async def close(self) -> None:
        return None


# ─── In-process backend ─────────────────────────────────

class LocalSubscription(Subscription):
    def __init__(self) -> None:
        self.queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue()

    async def get(self) -> dict[str, Any]:
        return await self.queue.get()


class LocalBroadcaster(Broadcaster):
    """Per-subscriber queues inside this process."""

    backend = "memory"

    def __init__(self) -> None:
        self._subscribers: set[LocalSubscription] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def publish(self, event_type: str, record: dict[str, Any]) -> None:
        message = make_message(event_type, record)
        for sub in list(self._subscribers):
            sub.queue.put_nowait(message)

    @asynccontextmanager
    async def subscribe(self) -> AsyncIterator[LocalSubscription]:
        sub = LocalSubscription()
        self._subscribers.add(sub)
        try:
            yield sub
        finally:
            self._subscribers.discard(sub)


# ─── Redis backend ──────────────────────────────────────

class RedisSubscription(Subscription):
    def __init__(self, pubsub: PubSub) -> None:
        self._messages = pubsub.listen()

    async def get(self) -> dict[str, Any]:
        async for message in self._messages:
            if message["type"] == "message":
                return json.loads(message["data"])
        raise StopAsyncIteration


class RedisBroadcaster(Broadcaster):
    """Redis pub/sub on a single namespaced channel."""

    backend = "redis"

    def __init__(self, redis: aioredis.Redis, channel: str) -> None:
        self.redis = redis
        self.channel = channel

    @classmethod
    async def connect(cls, url: str, channel: str) -> "RedisBroadcaster":
        r = aioredis.from_url(url, encoding="utf-8", decode_responses=True)
        # Verify connection
        await r.ping()
        return cls(r, channel)

    async def publish(self, event_type: str, record: dict[str, Any]) -> None:
        """Publish and move on. A lost publish is logged, never raised —
        the record is already stored and the request must still succeed."""
        payload = json.dumps(make_message(event_type, record))
        try:
            await self.redis.publish(self.channel, payload)
        except RedisError as e:
            logger.warning(
                "broadcast.publish_failed",
                event_type=event_type,
                record_id=record.get("id"),
                error=str(e),
            )

    @asynccontextmanager
    async def subscribe(self) -> AsyncIterator[RedisSubscription]:
        pubsub = self.redis.pubsub()
        await pubsub.subscribe(self.channel)
        try:
            yield RedisSubscription(pubsub)
        finally:
            await pubsub.unsubscribe(self.channel)
            await pubsub.aclose()

    async def ping(self) -> None:
        await self.redis.ping()

    async def close(self) -> None:
        await self.redis.aclose()


def channel_name(settings: Settings) -> str:
    return f"grindlink:events:{settings.app_id}"


async def init_broadcaster(
    settings: Settings, redis_url: Optional[str] = None
) -> Broadcaster:
    """Build the configured backend.

    If Redis is configured but unreachable the app keeps running on the
    in-process backend: live updates still reach every client connected
    to this process.
    """
    if settings.broadcast_backend == "memory":
        return LocalBroadcaster()

    url = redis_url or settings.redis_url
    try:
        broadcaster = await RedisBroadcaster.connect(url, channel_name(settings))
    except (RedisError, OSError) as e:
        logger.warning("grindlink.redis_unavailable", url=url, error=str(e))
        return LocalBroadcaster()
    logger.info("grindlink.redis_connected", url=url)
    return broadcaster
