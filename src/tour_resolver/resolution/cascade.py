"""
Coordinate resolution cascade.

An ordered list of layers, each a (source, confidence, resolver) record,
driven by one loop. The first layer that finds coordinates wins; when every
layer misses the landmark gets the (0, 0) placeholder. refine() never raises.

Default order:

    layer               source          confidence  fallback recorded
    primary_places      places          0.9         -
    alternative_names   places          0.8         alternative_names
    geocoding           geocoding       0.6         geocoding
    language_model      language_model  0.3         gemini_coordinates
    (terminal)          -               0.1         default

A layer is skipped when the degradation controller disables its source or its
circuit breaker is open. Availability is checked again before every call, so
retries and further alternative names stop once a source is switched off.
Before any layer runs, a cached resolution for the same (destination, name)
is reused while the cache source is enabled.
"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Optional, Sequence

import structlog

from tour_resolver.degradation.circuit_breaker import CircuitBreakerRegistry
from tour_resolver.degradation.controller import DegradationController
from tour_resolver.models.enums import CoordinateSource, FallbackName, OutcomeStatus, SourceName
from tour_resolver.models.landmark_models import CityCenterReference, LandmarkCandidate, ResolvedLandmark, new_landmark_id
from tour_resolver.models.source_models import CoordinateMatch, SourceOutcome
from tour_resolver.monitoring.metrics import (
    landmark_confidence,
    landmark_resolutions_total,
    plausibility_penalties_total,
    terminal_fallbacks_total,
)
from tour_resolver.resolution.geo import apply_plausibility
from tour_resolver.resolution.resolvers import (
    AlternativeNamesResolver,
    GeocodingResolver,
    LanguageModelCoordinateResolver,
    LayerRequest,
    Operation,
    PrimaryPlacesResolver,
    Resolver,
)
from tour_resolver.retry.classifier import NON_RETRYABLE_CATEGORIES
from tour_resolver.retry.engine import RetryEngine
from tour_resolver.retry.metadata import RetryResult
from tour_resolver.sources.exceptions import CoordinateParseError, SourceDisabledError, SourceTimeoutError
from tour_resolver.sources.gemini_client import GeminiClient
from tour_resolver.sources.geocoding_client import GeocodingClient
from tour_resolver.sources.places_client import PlacesClient
from tour_resolver.sources.prompt_builder import PromptBuilder
from tour_resolver.sources.text_utils import normalize_name

logger = structlog.get_logger(__name__)

PRIMARY_CONFIDENCE = 0.9
ALTERNATIVE_NAME_CONFIDENCE = 0.8
GEOCODING_CONFIDENCE = 0.6
LANGUAGE_MODEL_CONFIDENCE = 0.3
TERMINAL_CONFIDENCE = 0.1
TERMINAL_COORDINATES = (0.0, 0.0)


@dataclass(frozen=True)
class CascadeLayer:
    name: str
    source: SourceName
    confidence: float
    coordinate_source: CoordinateSource
    resolve: Resolver
    fallback: Optional[FallbackName] = None


@dataclass
class RefinementTrace:
    """What happened while refining one landmark."""

    landmark: Optional[ResolvedLandmark] = None
    fallbacks_used: list[str] = field(default_factory=list)
    layers_attempted: list[str] = field(default_factory=list)
    external_calls: int = 0
    retries: int = 0
    cache_hit: bool = False
    distance_km: Optional[float] = None

    def record_fallback(self, name: str) -> None:
        if name not in self.fallbacks_used:
            self.fallbacks_used.append(name)


def default_layers(
    places_client: PlacesClient,
    geocoding_client: GeocodingClient,
    gemini_client: GeminiClient,
    prompt_builder: PromptBuilder,
    coordinate_temperature: Optional[float] = None,
) -> list[CascadeLayer]:
    return [
        CascadeLayer(
            "primary_places", SourceName.PLACES, PRIMARY_CONFIDENCE,
            CoordinateSource.PLACES, PrimaryPlacesResolver(places_client),
        ),
        CascadeLayer(
            "alternative_names", SourceName.PLACES, ALTERNATIVE_NAME_CONFIDENCE,
            CoordinateSource.PLACES, AlternativeNamesResolver(places_client),
            FallbackName.ALTERNATIVE_NAMES,
        ),
        CascadeLayer(
            "geocoding", SourceName.GEOCODING, GEOCODING_CONFIDENCE,
            CoordinateSource.GEOCODING, GeocodingResolver(geocoding_client),
            FallbackName.GEOCODING,
        ),
        CascadeLayer(
            "language_model", SourceName.LANGUAGE_MODEL, LANGUAGE_MODEL_CONFIDENCE,
            CoordinateSource.LANGUAGE_MODEL,
            LanguageModelCoordinateResolver(gemini_client, prompt_builder, coordinate_temperature),
            FallbackName.GEMINI_COORDINATES,
        ),
    ]


class CoordinateCascade:
    """
    Resolve landmark candidates to coordinates through ordered layers.

    Attributes:
        layers: Ordered layers, tried first to last
        controller: Degradation controller (gating, timeouts, health, cache)
        retry_engine: Retry engine wrapping every source call
        breakers: Optional per-source circuit breakers
    """

    def __init__(
        self,
        layers: Sequence[CascadeLayer],
        controller: DegradationController,
        retry_engine: RetryEngine,
        breakers: Optional[CircuitBreakerRegistry] = None,
        plausibility_radius_km: float = 100.0,
        plausibility_penalty: float = 0.3,
        cache_ttl_s: Optional[float] = None,
    ):
        self.layers = list(layers)
        self.controller = controller
        self.retry_engine = retry_engine
        self.breakers = breakers
        self.plausibility_radius_km = plausibility_radius_km
        self.plausibility_penalty = plausibility_penalty
        self.cache_ttl_s = cache_ttl_s

    # === Source calls ===

    def source_available(self, source: SourceName) -> bool:
        """Enabled at the current level and not blocked by an open breaker."""
        if not self.controller.is_service_enabled(source):
            return False
        if self.breakers is not None and not self.breakers.allow_request(source):
            return False
        return True

    async def invoke(
        self,
        source: SourceName,
        operation: Operation,
        trace: Optional[RefinementTrace] = None,
    ) -> RetryResult:
        """
        Run one source operation under timeout, retry, health and breaker rules.

        Each attempt gets the controller's current timeout budget and reports
        its outcome and latency to the controller. Nothing is sent while the
        source is unavailable, and retries stop as soon as it becomes so.
        """
        if not self.source_available(source):
            return self._not_called(source)

        breaker = self.breakers.get(source) if self.breakers is not None else None

        async def attempt():
            timeout_ms = self.controller.get_timeout_for_service(source)
            if trace is not None:
                trace.external_calls += 1
            started = time.perf_counter()
            try:
                data = await asyncio.wait_for(operation(), timeout=timeout_ms / 1000.0)
            except asyncio.TimeoutError as e:
                await self._report(source, breaker, False, started)
                raise SourceTimeoutError(
                    f"{source.value} call exceeded its {timeout_ms} ms budget",
                    source=source.value,
                    details={"timeout_ms": timeout_ms},
                ) from e
            except CoordinateParseError:
                # the service answered; the content was unusable
                await self._report(source, breaker, True, started)
                raise
            except Exception:
                await self._report(source, breaker, False, started)
                raise
            await self._report(source, breaker, True, started)
            return data

        result = await self.retry_engine.execute_with_retry(
            attempt, source, stop_when=lambda: not self.source_available(source)
        )
        if trace is not None:
            trace.retries += result.retries

        categorized = result.categorized_error
        if breaker is not None and categorized is not None and categorized.category in NON_RETRYABLE_CATEGORIES:
            breaker.force_open(reason=categorized.category.value)
        return result

    def _not_called(self, source: SourceName) -> RetryResult:
        policy = self.controller.get_current_policy()
        error = SourceDisabledError(
            f"{source.value} unavailable at {policy.name} or circuit open, no call made",
            source=source.value,
        )
        logger.debug("Source unavailable, call not sent", source=source.value, degradation_level=policy.name)
        return RetryResult(
            source_type=source.value,
            success=False,
            attempts=0,
            total_time_ms=0.0,
            error=error,
            categorized_error=self.retry_engine.classifier.classify(error),
        )

    async def _report(self, source: SourceName, breaker, success: bool, started: float) -> None:
        elapsed_ms = (time.perf_counter() - started) * 1000
        if breaker is not None:
            if success:
                breaker.record_success()
            else:
                breaker.record_failure()
        await self.controller.update_service_health(source, success, elapsed_ms)

    # === Refinement ===

    @staticmethod
    def cache_key(candidate: LandmarkCandidate, destination: str) -> str:
        return f"{normalize_name(destination)}::{normalize_name(candidate.name)}"

    def _build_landmark(
        self,
        candidate: LandmarkCandidate,
        layer: CascadeLayer,
        match: CoordinateMatch,
        city_center: Optional[CityCenterReference],
        trace: RefinementTrace,
    ) -> ResolvedLandmark:
        confidence, distance = apply_plausibility(
            layer.confidence,
            match.coordinates,
            city_center.coordinates if city_center else None,
            self.plausibility_radius_km,
            self.plausibility_penalty,
        )
        trace.distance_km = distance
        if confidence < layer.confidence:
            plausibility_penalties_total.inc()
            logger.warning(
                "Landmark far from city centre, confidence reduced",
                landmark=candidate.name,
                distance_km=round(distance, 1),
                confidence=confidence,
                layer=layer.name,
            )
        return ResolvedLandmark(
            name=candidate.name,
            coordinates=match.coordinates,
            description=candidate.description,
            place_identifier=match.place_identifier,
            coordinate_source=layer.coordinate_source,
            confidence=confidence,
            rating=match.rating,
            photo_references=match.photo_references or None,
            type_tags=match.type_tags or None,
            formatted_address=match.formatted_address,
        )

    @staticmethod
    def terminal_landmark(candidate: LandmarkCandidate) -> ResolvedLandmark:
        return ResolvedLandmark(
            name=candidate.name,
            coordinates=TERMINAL_COORDINATES,
            description=candidate.description,
            coordinate_source=CoordinateSource.DEFAULT,
            confidence=TERMINAL_CONFIDENCE,
        )

    def _from_cache(self, candidate: LandmarkCandidate, destination: str) -> Optional[ResolvedLandmark]:
        if not self.controller.is_service_enabled(SourceName.CACHE):
            return None
        cached = self.controller.cache.get(self.cache_key(candidate, destination))
        if cached is None:
            return None
        return cached.model_copy(update={"id": new_landmark_id()})

    async def _run_layers(
        self,
        candidate: LandmarkCandidate,
        destination: str,
        city_center: Optional[CityCenterReference],
        trace: RefinementTrace,
    ) -> Optional[ResolvedLandmark]:
        request = LayerRequest(candidate, destination, city_center)

        async def invoke(source: SourceName, operation: Operation) -> RetryResult:
            return await self.invoke(source, operation, trace)

        for layer in self.layers:
            if not self.source_available(layer.source):
                logger.debug("Layer unavailable, skipping", layer=layer.name, source=layer.source.value)
                continue

            try:
                outcome = await layer.resolve(request, invoke)
            except Exception as e:
                logger.exception("Layer crashed, falling through", landmark=candidate.name, layer=layer.name)
                outcome = SourceOutcome.failed(self.retry_engine.classifier.classify(e))
            if outcome.status is OutcomeStatus.SKIPPED:
                continue

            trace.layers_attempted.append(layer.name)
            if layer.fallback is not None:
                trace.record_fallback(layer.fallback.value)

            if outcome.status is OutcomeStatus.FOUND:
                return self._build_landmark(candidate, layer, outcome.match, city_center, trace)
            if outcome.status is OutcomeStatus.ERROR:
                logger.info(
                    "Layer failed, falling through",
                    landmark=candidate.name,
                    layer=layer.name,
                    **outcome.error.log_context(),
                )
            else:
                logger.debug("Layer found nothing", landmark=candidate.name, layer=layer.name)
        return None

    async def refine_with_trace(
        self,
        candidate: LandmarkCandidate,
        destination: str,
        city_center: Optional[CityCenterReference] = None,
    ) -> RefinementTrace:
        """Resolve ``candidate`` and report which layers, calls and retries it took."""
        trace = RefinementTrace()
        try:
            cached = self._from_cache(candidate, destination)
            if cached is not None:
                trace.cache_hit = True
                trace.landmark = cached
                logger.debug("Landmark served from cache", landmark=candidate.name)
                return trace

            landmark = await self._run_layers(candidate, destination, city_center, trace)
            if landmark is not None:
                self.controller.cache.set(self.cache_key(candidate, destination), landmark, self.cache_ttl_s)
                landmark_resolutions_total.labels(coordinate_source=landmark.coordinate_source.value).inc()
                landmark_confidence.observe(landmark.confidence)
                trace.landmark = landmark
                return trace
        except Exception:
            logger.exception("Unexpected error while refining landmark", landmark=candidate.name)

        trace.landmark = self.terminal_landmark(candidate)
        trace.record_fallback(FallbackName.DEFAULT.value)
        terminal_fallbacks_total.inc()
        landmark_resolutions_total.labels(coordinate_source=CoordinateSource.DEFAULT.value).inc()
        logger.warning(
            "No coordinates found, using placeholder",
            landmark=candidate.name,
            destination=destination,
            layers_attempted=trace.layers_attempted,
            degradation_level=self.controller.get_current_policy().name,
        )
        return trace

    async def refine(
        self,
        candidate: LandmarkCandidate,
        destination: str,
        city_center: Optional[CityCenterReference] = None,
    ) -> ResolvedLandmark:
        """Resolve one candidate to a landmark. Never raises."""
        trace = await self.refine_with_trace(candidate, destination, city_center)
        return trace.landmark
