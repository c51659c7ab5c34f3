"""
Event channel (Redis pub/sub).

The lifecycle engine only produces events; subscribing is a client
concern.  Messages are hints that tell a client to re-fetch state, so
publishing is best-effort: a Redis failure is logged and swallowed rather
than failing a request whose write has already committed.

Envelope::

    {"event": "<name>", "data": {...}, "ts": "<iso-8601>"}
"""

from __future__ import annotations

import json
import logging
from typing import Any

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from ridein.domain import grid
from ridein.infrastructure.models import utcnow

logger = logging.getLogger(__name__)


class EventChannel:
    def __init__(self, client: aioredis.Redis):
        self.redis = client

    async def publish(self, topic: str, event: str, data: dict[str, Any]) -> bool:
        message = json.dumps(
            {"event": event, "data": data, "ts": utcnow().isoformat()},
            default=str,
        )
        try:
            receivers = await self.redis.publish(topic, message)
        except (RedisError, OSError):
            logger.warning("Failed to publish %s on %s", event, topic, exc_info=True)
            return False
        logger.debug("Published %s on %s (%d receivers)", event, topic, receivers)
        return True

    # ── Typed helpers ─────────────────────────────────────────────────

    async def new_trip(self, city: str | None, cell: str, trip: dict) -> bool:
        return await self.publish(grid.trip_requests_topic(city, cell), "new_trip", trip)

    async def trip_update(self, trip_id: int, trip: dict) -> bool:
        return await self.publish(grid.trip_events_topic(trip_id), "trip_update", trip)

    async def new_bid(self, trip_id: int, bid: dict) -> bool:
        return await self.publish(grid.trip_events_topic(trip_id), "bid", bid)

    async def bid_accepted(self, driver_id: int, trip: dict) -> bool:
        return await self.publish(grid.user_topic(driver_id), "bid_accepted", trip)

    async def driver_location(self, city: str | None, cell: str, data: dict) -> bool:
        return await self.publish(grid.driver_presence_topic(city, cell), "loc", data)
