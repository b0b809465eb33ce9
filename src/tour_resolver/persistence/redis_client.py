"""
Redis connection pools.

One async pool per process, shared by the tour repository and the Redis
health store. A sync client is kept for operational scripts and health
checks that run outside the event loop.
"""

import logging
from typing import Optional

from redis import ConnectionPool, Redis
from redis.asyncio import ConnectionPool as AsyncConnectionPool
from redis.asyncio import Redis as AsyncRedis

from tour_resolver.config import Settings

logger = logging.getLogger(__name__)


class RedisClient:
    """Class-level Redis connection pools."""

    _sync_pool: Optional[ConnectionPool] = None
    _async_pool: Optional[AsyncConnectionPool] = None

    @staticmethod
    def _pool_kwargs(settings: Settings) -> dict:
        return {
            "max_connections": settings.REDIS_MAX_CONNECTIONS,
            "decode_responses": True,
            "socket_timeout": 5,
            "socket_connect_timeout": 5,
            "retry_on_timeout": True,
        }

    @classmethod
    def get_sync_client(cls, settings: Settings) -> Redis:
        if cls._sync_pool is None:
            cls._sync_pool = ConnectionPool.from_url(settings.REDIS_URL, **cls._pool_kwargs(settings))
            logger.info("Initialized Redis sync connection pool", extra={"url": settings.REDIS_URL})
        return Redis(connection_pool=cls._sync_pool)

    @classmethod
    def get_async_client(cls, settings: Settings) -> AsyncRedis:
        if cls._async_pool is None:
            cls._async_pool = AsyncConnectionPool.from_url(settings.REDIS_URL, **cls._pool_kwargs(settings))
            logger.info("Initialized Redis async connection pool", extra={"url": settings.REDIS_URL})
        return AsyncRedis(connection_pool=cls._async_pool)

    @classmethod
    async def close_async_pool(cls) -> None:
        if cls._async_pool is not None:
            await cls._async_pool.disconnect()
            cls._async_pool = None
            logger.info("Closed Redis async connection pool")

    @classmethod
    def close_sync_pool(cls) -> None:
        if cls._sync_pool is not None:
            cls._sync_pool.disconnect()
            cls._sync_pool = None
            logger.info("Closed Redis sync connection pool")


def ping(settings: Settings) -> bool:
    """True when Redis answers PING."""
    try:
        return bool(RedisClient.get_sync_client(settings).ping())
    except Exception as e:
        logger.warning("Redis ping failed", extra={"error": str(e)})
        return False
