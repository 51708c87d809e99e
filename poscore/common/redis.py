"""
Redis Client Utility Module

This module provides a singleton async Redis client for components that
need to talk to Redis directly, such as the shared refresh token registry.
"""

import logging
from typing import Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

# Setup logging
logger = logging.getLogger(__name__)

# Singleton Redis client instance
_redis_client: Optional[Redis] = None


def get_redis_client(url: str) -> Redis:
    """
    Get the shared Redis client, creating it on first use.

    The client connects lazily, so a Redis outage surfaces on the first
    command rather than here.

    Args:
        url: Redis connection URL, e.g. ``redis://localhost:6379/0``

    Returns:
        Redis client instance
    """
    global _redis_client

    if _redis_client is None:
        _redis_client = Redis.from_url(url, decode_responses=True)
        logger.info(f"Created Redis client for {url.split('@')[-1]}")

    return _redis_client


async def reset_redis_client() -> None:
    """
    Close and forget the shared client.

    The next call to get_redis_client() opens a new connection pool.
    """
    global _redis_client

    if _redis_client is not None:
        try:
            await _redis_client.aclose()
        except RedisError as e:
            logger.error(f"Error closing Redis connection: {e}")

        _redis_client = None
        logger.info("Redis client reset")
