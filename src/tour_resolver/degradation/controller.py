"""
Health-driven degradation controller.

Every external call reports success or failure plus latency. The controller
folds that into per-source health (via the injected HealthStore), derives a
system-wide level from the fraction of healthy sources and their average
latency, and answers two questions for the cascade: may this source run,
and how long may a call take.
"""

from datetime import datetime, timezone
from typing import Callable, Optional, Sequence

import structlog

from tour_resolver.degradation.cache import TTLCache
from tour_resolver.degradation.health_store import HealthStore
from tour_resolver.degradation.levels import DEGRADATION_LEVELS, DegradationPolicy, compute_level
from tour_resolver.models.enums import SourceName
from tour_resolver.models.source_models import ServiceHealthRecord
from tour_resolver.monitoring.metrics import (
    degradation_level,
    degradation_transitions_total,
    service_health_success_rate,
)

logger = structlog.get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DegradationController:
    """
    Tracks source health and the current degradation level.

    Attributes:
        health_store: Where per-source records live
        levels: Level table indexed by level number
        cache: TTL cache consulted while the cache source is enabled
        recovery_after_s: Records not updated for this long count as healthy
    """

    def __init__(
        self,
        health_store: HealthStore,
        levels: Sequence[DegradationPolicy] = DEGRADATION_LEVELS,
        cache: Optional[TTLCache] = None,
        recovery_after_s: Optional[float] = 60.0,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.health_store = health_store
        self.levels = tuple(levels)
        self.cache = cache if cache is not None else TTLCache()
        self.recovery_after_s = recovery_after_s
        self._clock = clock
        self.current_level = 0
        self.forced = False
        degradation_level.set(0)

    # === Queries ===

    def get_current_policy(self) -> DegradationPolicy:
        return self.levels[self.current_level]

    def is_service_enabled(self, source: str | SourceName) -> bool:
        return self.get_current_policy().enables(source)

    def get_timeout_for_service(self, source: str | SourceName) -> int:
        """Per-call timeout in milliseconds for ``source`` at the current level."""
        return self.get_current_policy().timeout_ms

    # === Updates ===

    async def update_service_health(
        self, source: str | SourceName, success: bool, response_time_ms: float
    ) -> ServiceHealthRecord:
        """
        Record one call outcome and re-evaluate the level.

        Clears a forced level.
        """
        key = source.value if isinstance(source, SourceName) else source
        record = await self.health_store.record(key, success, response_time_ms)
        service_health_success_rate.labels(source=key).set(record.success_rate)

        if not record.is_healthy:
            logger.warning(
                "Source marked unhealthy",
                source=key,
                consecutive_failures=record.consecutive_failures,
                success_rate=round(record.success_rate, 3),
            )
        if self.forced:
            logger.info("Forced degradation level cleared by health update", level=self.current_level)
            self.forced = False

        self._evaluate(await self.health_store.query())
        return record

    async def refresh(self) -> int:
        """
        Re-read the health store and re-evaluate.

        Picks up updates made by other instances sharing the store, and lets
        sources that have gone quiet recover. A forced level is kept.
        """
        if not self.forced:
            self._evaluate(await self.health_store.query())
        return self.current_level

    def force_level(self, level: int) -> bool:
        """Pin the level until the next health update. Out-of-range levels are ignored."""
        if not 0 <= level < len(self.levels):
            logger.warning("Ignoring out-of-range degradation level", level=level)
            return False
        self._set_level(level, reason="forced")
        self.forced = True
        return True

    # === Evaluation ===

    def _is_stale(self, record: ServiceHealthRecord) -> bool:
        if self.recovery_after_s is None:
            return False
        return (self._clock() - record.updated_at).total_seconds() >= self.recovery_after_s

    def evaluate(self, records: Sequence[ServiceHealthRecord]) -> tuple[float, float, int]:
        """
        Compute (overall_health, avg_response_time_ms, level) for ``records``.

        Stale records count as healthy and do not contribute latency.
        """
        if not records:
            return 1.0, 0.0, 0

        healthy = 0
        latencies: list[float] = []
        for record in records:
            if self._is_stale(record):
                healthy += 1
                continue
            if record.is_healthy:
                healthy += 1
            latencies.append(record.last_response_time_ms)

        overall_health = healthy / len(records)
        avg_response_time = sum(latencies) / len(latencies) if latencies else 0.0
        return overall_health, avg_response_time, compute_level(overall_health, avg_response_time)

    def _evaluate(self, records: Sequence[ServiceHealthRecord]) -> None:
        overall_health, avg_response_time, level = self.evaluate(records)
        if level != self.current_level:
            self._set_level(
                level,
                reason="health",
                overall_health=round(overall_health, 3),
                avg_response_time_ms=round(avg_response_time, 1),
            )

    def _set_level(self, level: int, reason: str, **context) -> None:
        previous = self.current_level
        self.current_level = level
        degradation_level.set(level)
        if previous == level:
            return
        degradation_transitions_total.labels(from_level=str(previous), to_level=str(level)).inc()
        logger.warning(
            "Degradation level changed",
            from_level=self.levels[previous].name,
            to_level=self.levels[level].name,
            reason=reason,
            enabled_sources=sorted(self.levels[level].enabled_sources),
            **context,
        )

    # === Reporting ===

    async def get_system_health(self) -> dict:
        records = await self.health_store.query()
        overall_health, avg_response_time, computed_level = self.evaluate(records)
        self.cache.purge_expired()
        return {
            "degradation_level": self.current_level,
            "policy": self.get_current_policy().as_dict(),
            "forced": self.forced,
            "computed_level": computed_level,
            "overall_health": overall_health,
            "avg_response_time_ms": avg_response_time,
            "services": {record.source: record.model_dump(mode="json") for record in records},
            "cache_size": self.cache.size,
        }
