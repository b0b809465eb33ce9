"""
Cascade layer resolvers.

A resolver receives the landmark request and an invoker, and returns a
SourceOutcome. The invoker (owned by the cascade) wraps every external call
with the timeout budget, retries, health tracking and circuit breaking, so
resolvers only decide *what* to ask.
"""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Protocol

import structlog

from tour_resolver.models.enums import SourceName
from tour_resolver.models.landmark_models import CityCenterReference, Coordinates, LandmarkCandidate
from tour_resolver.models.source_models import CoordinateMatch, SourceOutcome
from tour_resolver.retry.metadata import RetryResult
from tour_resolver.sources.gemini_client import GeminiClient
from tour_resolver.sources.geocoding_client import GeocodingClient
from tour_resolver.sources.places_client import PlacesClient
from tour_resolver.sources.prompt_builder import PromptBuilder
from tour_resolver.sources.text_utils import parse_coordinate_pair

logger = structlog.get_logger(__name__)

Operation = Callable[[], Awaitable[Any]]
SourceInvoker = Callable[[SourceName, Operation], Awaitable[RetryResult]]


@dataclass(frozen=True)
class LayerRequest:
    """Everything a layer may use to look up one landmark."""

    candidate: LandmarkCandidate
    destination: str
    city_center: Optional[CityCenterReference] = None

    @property
    def bias_center(self) -> Optional[Coordinates]:
        return self.city_center.coordinates if self.city_center else None


class Resolver(Protocol):
    async def __call__(self, request: LayerRequest, invoke: SourceInvoker) -> SourceOutcome:
        ...


def outcome_from_result(result: RetryResult) -> SourceOutcome:
    """Map a retry result carrying a match, a list of matches or None."""
    if not result.success:
        return SourceOutcome.failed(result.categorized_error)
    data = result.data
    if isinstance(data, list):
        data = data[0] if data else None
    if data is None:
        return SourceOutcome.not_found()
    return SourceOutcome.found(data)


class PrimaryPlacesResolver:
    """Places text search for "{name} {destination}"."""

    def __init__(self, client: PlacesClient):
        self.client = client

    async def __call__(self, request: LayerRequest, invoke: SourceInvoker) -> SourceOutcome:
        query = f"{request.candidate.name} {request.destination}"
        result = await invoke(
            SourceName.PLACES, lambda: self.client.search_text(query, request.bias_center)
        )
        return outcome_from_result(result)


class AlternativeNamesResolver:
    """
    Places text search for each alternative name, in order.

    Skipped when the candidate has no alternative names. When every name
    misses, the last error (if any) is reported so auth and quota failures
    still reach the cascade.
    """

    def __init__(self, client: PlacesClient):
        self.client = client

    async def __call__(self, request: LayerRequest, invoke: SourceInvoker) -> SourceOutcome:
        names = request.candidate.alternative_names
        if not names:
            return SourceOutcome.skipped()

        last_error: Optional[SourceOutcome] = None
        for alt_name in names:
            query = f"{alt_name} {request.destination}"
            result = await invoke(
                SourceName.PLACES,
                lambda q=query: self.client.search_text(q, request.bias_center),
            )
            if not result.attempted:
                logger.info(
                    "Places unavailable, remaining alternative names skipped",
                    landmark=request.candidate.name,
                    alternative_name=alt_name,
                )
                return last_error or outcome_from_result(result)
            outcome = outcome_from_result(result)
            if outcome.match is not None:
                logger.info(
                    "Resolved via alternative name",
                    landmark=request.candidate.name,
                    alternative_name=alt_name,
                )
                return outcome
            if outcome.error is not None:
                last_error = outcome
        return last_error or SourceOutcome.not_found()


class GeocodingResolver:
    """Geocoding of "{name}, {destination}"."""

    def __init__(self, client: GeocodingClient):
        self.client = client

    async def __call__(self, request: LayerRequest, invoke: SourceInvoker) -> SourceOutcome:
        address = f"{request.candidate.name}, {request.destination}"
        return outcome_from_result(
            await invoke(SourceName.GEOCODING, lambda: self.client.geocode(address))
        )


class LanguageModelCoordinateResolver:
    """
    Ask the language model for a coordinate pair.

    Parsing happens inside the invoked operation, so unparseable output is a
    DATA_QUALITY failure of this layer (never retried by default).
    """

    def __init__(
        self,
        client: GeminiClient,
        prompt_builder: PromptBuilder,
        temperature: Optional[float] = None,
    ):
        self.client = client
        self.prompt_builder = prompt_builder
        self.temperature = temperature

    async def __call__(self, request: LayerRequest, invoke: SourceInvoker) -> SourceOutcome:
        prompt = self.prompt_builder.build_coordinate_prompt(request.candidate, request.destination)

        async def ask() -> CoordinateMatch:
            text = await self.client.generate(prompt, temperature=self.temperature, max_output_tokens=64)
            return CoordinateMatch(coordinates=parse_coordinate_pair(text))

        return outcome_from_result(await invoke(SourceName.LANGUAGE_MODEL, ask))
