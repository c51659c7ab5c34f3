"""
Redis connection pool shared by the event channel and the reconciler lock.

Clients are thin wrappers over one pool per process; ``close_redis`` drains
it on shutdown.
"""

import redis.asyncio as aioredis

from ridein.config import settings

_pool = aioredis.ConnectionPool.from_url(
    settings.redis_url,
    decode_responses=True,
    max_connections=settings.redis_max_connections,
)


async def get_redis() -> aioredis.Redis:
    return aioredis.Redis(connection_pool=_pool)


async def close_redis() -> None:
    await _pool.disconnect()
