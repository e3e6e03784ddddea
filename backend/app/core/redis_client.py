"""
Redis client initialization.

Redis backs the distributed per-owner ledger locks when
LEDGER_LOCK_BACKEND=redis. The client is created lazily so that
single-process deployments and tests never open a connection.
"""

from typing import Optional

import redis.asyncio as redis
from backend.app.core.config import settings


redis_client: Optional[redis.Redis] = None


def get_redis() -> redis.Redis:
    """Return the shared async Redis client, creating it on first use."""
    global redis_client
    if redis_client is None:
        redis_client = redis.from_url(
            settings.redis_url,
            decode_responses=settings.redis_decode_responses,
        )
    return redis_client


async def ping_redis() -> bool:
    """
    Test Redis connection.

    Returns:
        True if connection successful, False otherwise
    """
    try:
        return await get_redis().ping()
    except redis.RedisError:
        return False
