"""Domain models for tour resolution."""

from tour_resolver.models.enums import (
    ConfidenceBucket,
    CoordinateSource,
    ErrorCategory,
    FallbackName,
    OutcomeStatus,
    SourceName,
)
from tour_resolver.models.landmark_models import (
    CityCenterReference,
    Coordinates,
    LandmarkCandidate,
    LandmarkSuggestions,
    ResolvedLandmark,
    TourQualityMetrics,
    TourResolution,
)
from tour_resolver.models.source_models import CoordinateMatch, ServiceHealthRecord, SourceOutcome

__all__ = [
    "CityCenterReference",
    "ConfidenceBucket",
    "CoordinateMatch",
    "CoordinateSource",
    "Coordinates",
    "ErrorCategory",
    "FallbackName",
    "LandmarkCandidate",
    "LandmarkSuggestions",
    "OutcomeStatus",
    "ResolvedLandmark",
    "ServiceHealthRecord",
    "SourceName",
    "SourceOutcome",
    "TourQualityMetrics",
    "TourResolution",
]
