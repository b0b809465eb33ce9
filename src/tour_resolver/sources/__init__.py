"""
HTTP clients for the external coordinate and suggestion sources.

Each client makes exactly one HTTP call per method call and raises
SourceError subclasses on failure; "not found" is an empty result.
"""

from tour_resolver.sources.exceptions import (
    CoordinateParseError,
    SourceAuthError,
    SourceConnectionError,
    SourceError,
    SourceRateLimitError,
    SourceResponseError,
    SourceTimeoutError,
    SourceUnavailableError,
)
from tour_resolver.sources.gemini_client import GeminiClient
from tour_resolver.sources.geocoding_client import GeocodingClient
from tour_resolver.sources.places_client import PlacesClient
from tour_resolver.sources.prompt_builder import PromptBuilder

__all__ = [
    "CoordinateParseError",
    "GeminiClient",
    "GeocodingClient",
    "PlacesClient",
    "PromptBuilder",
    "SourceAuthError",
    "SourceConnectionError",
    "SourceError",
    "SourceRateLimitError",
    "SourceResponseError",
    "SourceTimeoutError",
    "SourceUnavailableError",
]
