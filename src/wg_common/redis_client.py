"""Redis client factory for the per-user wager rate limit.

Balances, wagers and settlement records never touch Redis. The Celery broker
and the settlement cadence keys live on the same instance (see src.worker).
"""

import redis.asyncio as aioredis

from config.settings import settings

_redis_pool: aioredis.Redis | None = None


async def get_redis() -> aioredis.Redis:
    """Lazily create the shared connection pool."""
    global _redis_pool  # noqa: PLW0603
    if _redis_pool is None:
        _redis_pool = aioredis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            health_check_interval=30,
        )
    return _redis_pool


async def ping_redis() -> None:
    """Fail fast at startup if Redis is unreachable."""
    client = await get_redis()
    await client.ping()


async def close_redis() -> None:
    global _redis_pool  # noqa: PLW0603
    if _redis_pool is not None:
        await _redis_pool.aclose()
        _redis_pool = None
