"""
Redis-backed storage for finished tours.

Storage layout:
- Tour JSON: "tour:result:{tour_id}" with TTL
- Index by creation time: sorted set "tour:results:index" (score = timestamp)
- Per-destination index: sorted set "tour:destination:{normalized}"

Index entries older than the result TTL are trimmed on every save.
"""

import time
from typing import Optional

import structlog
from redis.asyncio import Redis as AsyncRedis

from tour_resolver.config import Settings
from tour_resolver.models.landmark_models import TourResolution
from tour_resolver.sources.text_utils import normalize_name

logger = structlog.get_logger(__name__)


class RedisTourRepository:
    """Async repository for TourResolution documents."""

    RESULT_PREFIX = "tour:result:"
    RESULTS_INDEX = "tour:results:index"
    DESTINATION_PREFIX = "tour:destination:"

    def __init__(self, redis_client: AsyncRedis, settings: Settings):
        self.redis = redis_client
        self.result_ttl = settings.RESULT_TTL_SECONDS

    def _result_key(self, tour_id: str) -> str:
        return f"{self.RESULT_PREFIX}{tour_id}"

    def _destination_key(self, destination: str) -> str:
        return f"{self.DESTINATION_PREFIX}{normalize_name(destination)}"

    async def save(self, resolution: TourResolution) -> None:
        """
        Store a tour.

        Raises whatever the Redis client raises; the orchestrator logs it.
        """
        score = resolution.created_at.timestamp()
        await self.redis.setex(
            name=self._result_key(resolution.tour_id),
            time=self.result_ttl,
            value=resolution.model_dump_json(),
        )
        cutoff = time.time() - self.result_ttl
        for index_key in (self.RESULTS_INDEX, self._destination_key(resolution.destination)):
            await self.redis.zadd(index_key, {resolution.tour_id: score})
            await self.redis.zremrangebyscore(index_key, "-inf", cutoff)
        logger.info(
            "Saved tour",
            tour_id=resolution.tour_id,
            destination=resolution.destination,
            ttl=self.result_ttl,
        )

    async def get_tour(self, tour_id: str) -> Optional[TourResolution]:
        try:
            raw = await self.redis.get(self._result_key(tour_id))
            if raw is None:
                return None
            return TourResolution.model_validate_json(raw)
        except Exception as e:
            logger.error("Failed to load tour", tour_id=tour_id, error=str(e), exc_info=True)
            return None

    async def _load_many(self, tour_ids: list[str]) -> list[TourResolution]:
        tours = []
        for tour_id in tour_ids:
            tour = await self.get_tour(tour_id)
            if tour is not None:
                tours.append(tour)
        return tours

    async def get_recent_tours(self, limit: int = 20) -> list[TourResolution]:
        """Most recent tours first. Expired entries are skipped."""
        tour_ids = await self.redis.zrevrange(self.RESULTS_INDEX, 0, limit - 1)
        return await self._load_many(tour_ids)

    async def get_tours_for_destination(self, destination: str, limit: int = 10) -> list[TourResolution]:
        tour_ids = await self.redis.zrevrange(self._destination_key(destination), 0, limit - 1)
        return await self._load_many(tour_ids)

    async def delete_tour(self, tour_id: str) -> bool:
        """Delete a tour and drop it from both indexes."""
        tour = await self.get_tour(tour_id)
        deleted = await self.redis.delete(self._result_key(tour_id))
        await self.redis.zrem(self.RESULTS_INDEX, tour_id)
        if tour is not None:
            await self.redis.zrem(self._destination_key(tour.destination), tour_id)
        return bool(deleted)
