"""Redis persistence for tours and shared health state."""

from tour_resolver.persistence.redis_client import RedisClient
from tour_resolver.persistence.repository import RedisTourRepository

__all__ = ["RedisClient", "RedisTourRepository"]
