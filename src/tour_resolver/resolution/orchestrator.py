"""
Tour resolution orchestrator.

resolve_tour(destination):
    1. locate the city centre (best effort, used for plausibility)
    2. ask the suggestion service for candidates (fatal on failure)
    3. refine candidates one at a time through the cascade
    4. aggregate quality metrics and fallbacks
    5. hand the result to the persistence sink in the background

Candidates are processed sequentially so each one sees the degradation level
left behind by the previous one.
"""

import asyncio
import time
from typing import Optional, Protocol

import structlog

from tour_resolver.models.enums import SourceName
from tour_resolver.models.landmark_models import CityCenterReference, TourQualityMetrics, TourResolution
from tour_resolver.monitoring.metrics import persistence_failures_total, tour_processing_seconds, tours_total
from tour_resolver.resolution.cascade import CoordinateCascade
from tour_resolver.resolution.exceptions import InvalidDestinationError, SuggestionError
from tour_resolver.resolution.suggestions import LandmarkSuggestionService
from tour_resolver.sources.geocoding_client import GeocodingClient

logger = structlog.get_logger(__name__)


class TourSink(Protocol):
    """Where finished tours are persisted."""

    async def save(self, resolution: TourResolution) -> None:
        ...


class TourOrchestrator:
    """Resolve a destination into a tour of landmarks with coordinates."""

    def __init__(
        self,
        suggestion_service: LandmarkSuggestionService,
        cascade: CoordinateCascade,
        geocoding_client: Optional[GeocodingClient] = None,
        sink: Optional[TourSink] = None,
    ):
        self.suggestion_service = suggestion_service
        self.cascade = cascade
        self.controller = cascade.controller
        self.geocoding_client = geocoding_client
        self.sink = sink
        self._pending: set[asyncio.Task] = set()

    async def locate_city_center(self, destination: str) -> Optional[CityCenterReference]:
        """Geocode the destination itself. Returns None instead of failing."""
        if self.geocoding_client is None or not self.cascade.source_available(SourceName.GEOCODING):
            return None
        client = self.geocoding_client
        result = await self.cascade.invoke(SourceName.GEOCODING, lambda: client.geocode(destination))
        if not result.success or result.data is None:
            logger.info("City centre unavailable, plausibility checks disabled", destination=destination)
            return None
        match = result.data
        return CityCenterReference(
            destination=destination,
            coordinates=match.coordinates,
            formatted_address=match.formatted_address,
        )

    async def resolve_tour(self, destination: str) -> TourResolution:
        """
        Build a tour for ``destination``.

        Raises:
            InvalidDestinationError: blank destination
            SuggestionError: no candidates could be obtained
        """
        destination = " ".join((destination or "").split())
        if not destination:
            tours_total.labels(status="invalid_destination").inc()
            raise InvalidDestinationError("destination must not be blank")

        started = time.perf_counter()
        log = logger.bind(destination=destination)
        await self.controller.refresh()
        log.info("Tour resolution started", degradation_level=self.controller.get_current_policy().name)

        city_center = await self.locate_city_center(destination)

        try:
            suggestions = await self.suggestion_service.suggest(destination)
        except SuggestionError as e:
            tours_total.labels(status="suggestion_failed").inc()
            log.error("Suggestion service failed", reason=e.message, **e.details)
            raise

        landmarks = []
        fallbacks_used: list[str] = []
        external_calls = 0
        retries = 0
        for candidate in suggestions.landmarks:
            trace = await self.cascade.refine_with_trace(candidate, destination, city_center)
            landmarks.append(trace.landmark)
            external_calls += trace.external_calls
            retries += trace.retries
            for name in trace.fallbacks_used:
                if name not in fallbacks_used:
                    fallbacks_used.append(name)

        processing_time_ms = int((time.perf_counter() - started) * 1000)
        resolution = TourResolution(
            destination=destination,
            landmarks=landmarks,
            quality_metrics=TourQualityMetrics.from_landmarks(landmarks),
            fallbacks_used=fallbacks_used,
            processing_time_ms=processing_time_ms,
            guide_system_prompt=suggestions.guide_system_prompt,
            city_center=city_center,
            degradation_level=self.controller.get_current_policy().name,
        )

        tours_total.labels(status="success").inc()
        tour_processing_seconds.observe(processing_time_ms / 1000.0)
        log.info(
            "Tour resolution completed",
            tour_id=resolution.tour_id,
            landmarks=len(landmarks),
            high_confidence=resolution.quality_metrics.high_confidence,
            medium_confidence=resolution.quality_metrics.medium_confidence,
            low_confidence=resolution.quality_metrics.low_confidence,
            fallbacks_used=fallbacks_used,
            external_calls=external_calls,
            retries=retries,
            processing_time_ms=processing_time_ms,
        )

        self._schedule_persistence(resolution)
        return resolution

    # === Background persistence ===

    def _schedule_persistence(self, resolution: TourResolution) -> None:
        if self.sink is None:
            return
        task = asyncio.create_task(self._persist(resolution))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _persist(self, resolution: TourResolution) -> None:
        try:
            await self.sink.save(resolution)
        except Exception:
            persistence_failures_total.inc()
            logger.exception("Failed to persist tour", tour_id=resolution.tour_id)

    async def drain(self) -> None:
        """Wait for pending persistence tasks."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
