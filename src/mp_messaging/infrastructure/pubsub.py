"""Redis-backed topic bus for GraphQL subscriptions.

Channel naming: mp:<topic>:<key>, e.g. mp:message_added:<receiver_id>.
Payloads are JSON strings; delivery is at-most-once (plain PUBLISH).
"""

import json
import logging
from collections.abc import AsyncIterator

from src.mp_common.enums import FanoutTopic
from src.mp_common.redis_client import get_redis
from src.mp_messaging.domain.models import FanoutEvent

logger = logging.getLogger(__name__)


def channel_name(topic: FanoutTopic, key: str) -> str:
    return f"mp:{topic.value}:{key}"


class RedisPubSub:
    async def publish(self, topic: FanoutTopic, key: str, payload: str) -> int:
        redis = await get_redis()
        return int(await redis.publish(channel_name(topic, key), payload))

    async def subscribe(self, topic: FanoutTopic, key: str) -> AsyncIterator[str]:
        """Yield raw payloads until the consumer stops iterating."""
        channel = channel_name(topic, key)
        redis = await get_redis()
        pubsub = redis.pubsub()
        await pubsub.subscribe(channel)
        logger.debug("Subscribed to %s", channel)
        try:
            async for message in pubsub.listen():
                if message.get("type") == "message":
                    yield message["data"]
        finally:
            await pubsub.unsubscribe(channel)
            await pubsub.aclose()
            logger.debug("Unsubscribed from %s", channel)


class PubSubSink:
    """Fanout sink that feeds GraphQL subscribers through the topic bus."""

    name = "pubsub"

    def __init__(self, bus: RedisPubSub | None = None) -> None:
        self._bus = bus or RedisPubSub()

    async def deliver(self, event: FanoutEvent) -> None:
        await self._bus.publish(event.topic, event.key, json.dumps(event.payload, default=str))
