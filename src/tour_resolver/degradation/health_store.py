"""
Service health stores.

The degradation controller reads and writes per-source health through the
HealthStore protocol so one process can keep health in memory while a fleet
of resolvers shares it through Redis.

Redis layout:
- Hash per source: "{prefix}{source}" with the ServiceHealthRecord fields
- Set "{prefix}sources" listing every tracked source
Concurrent writers are last-write-wins.
"""

from datetime import datetime
from typing import Protocol, runtime_checkable

import structlog
from redis.asyncio import Redis as AsyncRedis

from tour_resolver.models.source_models import ServiceHealthRecord

logger = structlog.get_logger(__name__)


@runtime_checkable
class HealthStore(Protocol):
    """Storage for per-source health records."""

    async def record(
        self, source: str, success: bool, response_time_ms: float
    ) -> ServiceHealthRecord:
        """Fold one call outcome into the source's record and return it."""
        ...

    async def query(self) -> list[ServiceHealthRecord]:
        """Return every tracked record."""
        ...


class InMemoryHealthStore:
    """Process-local health store."""

    def __init__(self) -> None:
        self._records: dict[str, ServiceHealthRecord] = {}

    async def record(
        self, source: str, success: bool, response_time_ms: float
    ) -> ServiceHealthRecord:
        current = self._records.get(source) or ServiceHealthRecord(source=source)
        updated = current.observe(success, response_time_ms)
        self._records[source] = updated
        return updated

    async def query(self) -> list[ServiceHealthRecord]:
        return list(self._records.values())

    def clear(self) -> None:
        self._records.clear()


class RedisHealthStore:
    """
    Health store shared through Redis.

    Each record is a hash; values are stored as strings because the client
    runs with decode_responses=True.
    """

    def __init__(self, redis_client: AsyncRedis, key_prefix: str = "tour:health:"):
        self.redis = redis_client
        self.key_prefix = key_prefix
        self.sources_key = f"{key_prefix}sources"

    def _key(self, source: str) -> str:
        return f"{self.key_prefix}{source}"

    @staticmethod
    def _decode(source: str, raw: dict) -> ServiceHealthRecord:
        fields = {
            "source": source,
            "is_healthy": raw.get("is_healthy", "1") == "1",
            "last_response_time_ms": float(raw.get("last_response_time_ms", 0.0)),
            "success_rate": float(raw.get("success_rate", 1.0)),
            "consecutive_failures": int(raw.get("consecutive_failures", 0)),
        }
        if raw.get("updated_at"):
            fields["updated_at"] = datetime.fromisoformat(raw["updated_at"])
        return ServiceHealthRecord(**fields)

    @staticmethod
    def _encode(record: ServiceHealthRecord) -> dict[str, str]:
        return {
            "is_healthy": "1" if record.is_healthy else "0",
            "last_response_time_ms": str(record.last_response_time_ms),
            "success_rate": str(record.success_rate),
            "consecutive_failures": str(record.consecutive_failures),
            "updated_at": record.updated_at.isoformat(),
        }

    async def _get(self, source: str) -> ServiceHealthRecord:
        raw = await self.redis.hgetall(self._key(source))
        if not raw:
            return ServiceHealthRecord(source=source)
        return self._decode(source, raw)

    async def record(
        self, source: str, success: bool, response_time_ms: float
    ) -> ServiceHealthRecord:
        current = await self._get(source)
        updated = current.observe(success, response_time_ms)
        await self.redis.hset(self._key(source), mapping=self._encode(updated))
        await self.redis.sadd(self.sources_key, source)
        return updated

    async def query(self) -> list[ServiceHealthRecord]:
        sources = await self.redis.smembers(self.sources_key)
        records = []
        for source in sorted(sources):
            raw = await self.redis.hgetall(self._key(source))
            if raw:
                records.append(self._decode(source, raw))
        return records
