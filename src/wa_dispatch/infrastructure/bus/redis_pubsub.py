"""Redis Pub/Sub fan-out of message status changes."""
from __future__ import annotations

import logging
from typing import Any, Mapping

import redis.asyncio as aioredis

from wa_dispatch.infrastructure.bus.serializer import encode_message

logger = logging.getLogger(__name__)


class RedisPubSubPublisher:
    """Implements application.ports.bus.EventPublisher.

    Pub/Sub is fire-and-forget: a subscriber that is not connected at publish
    time never sees the event. Durable state lives in Postgres.
    """

    def __init__(self, redis: aioredis.Redis) -> None:
        self._redis = redis

    async def publish(self, channel: str, payload: Mapping[str, Any]) -> None:
        receivers = await self._redis.publish(channel, encode_message(payload))
        logger.debug("Published %s to %s (%d receivers)", payload.get("event_type"), channel, receivers)
