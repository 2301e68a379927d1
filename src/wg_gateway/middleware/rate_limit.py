"""Per-user fixed-window rate limit for wager placement.

Redis INCR + EXPIRE on ``ratelimit:{user_id}:wager``. Exposed as a FastAPI
dependency rather than middleware so that it runs after authentication and
can be overridden in tests.
"""

import logging

from fastapi import Depends

from config.settings import settings
from src.wg_common.errors import RateLimitError
from src.wg_common.redis_client import get_redis
from src.wg_gateway.auth.dependencies import get_current_user_id

logger = logging.getLogger("wg.request")

_WINDOW_SECONDS = 60


async def enforce_wager_rate_limit(user_id: str = Depends(get_current_user_id)) -> str:
    redis = await get_redis()
    key = f"ratelimit:{user_id}:wager"
    count = await redis.incr(key)
    if count == 1:
        await redis.expire(key, _WINDOW_SECONDS)
    if count > settings.WAGER_RATE_LIMIT_PER_MINUTE:
        logger.warning("Wager rate limit hit for %s (%d in window)", user_id, count)
        raise RateLimitError()
    return user_id
