"""
Landmark and tour models.

Coordinates are always (longitude, latitude) pairs, the GeoJSON order used
by the map front-ends that consume tours.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tour_resolver.models.enums import ConfidenceBucket, CoordinateSource

Coordinates = tuple[float, float]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_landmark_id() -> str:
    return f"landmark-{uuid.uuid4().hex[:12]}"


class LandmarkCandidate(BaseModel):
    """
    A landmark suggested by the language model, before coordinates exist.

    Alternative names are tried in order when the primary name finds nothing.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(min_length=1, description="Primary landmark name")
    alternative_names: list[str] = Field(
        default_factory=list, description="Other searchable names, in priority order"
    )
    description: str = Field(default="", description="Short description")
    category: str = Field(default="landmark", description="Free-form category")

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name must not be blank")
        return value


class ResolvedLandmark(BaseModel):
    """A candidate with coordinates, provenance and confidence."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(default_factory=new_landmark_id)
    name: str
    coordinates: Coordinates = Field(description="(longitude, latitude)")
    description: str = ""
    place_identifier: Optional[str] = None
    coordinate_source: CoordinateSource
    confidence: float = Field(ge=0.0, le=1.0)
    rating: Optional[float] = None
    photo_references: Optional[list[str]] = None
    type_tags: Optional[list[str]] = None
    formatted_address: Optional[str] = None

    @property
    def confidence_bucket(self) -> ConfidenceBucket:
        return ConfidenceBucket.for_score(self.confidence)


class CityCenterReference(BaseModel):
    """Geocoded centre of the destination, used for plausibility checks."""

    model_config = ConfigDict(frozen=True)

    destination: str
    coordinates: Coordinates
    formatted_address: Optional[str] = None


class TourQualityMetrics(BaseModel):
    """Confidence distribution over a tour's landmarks."""

    total_landmarks: int = Field(ge=0)
    high_confidence: int = Field(ge=0)
    medium_confidence: int = Field(ge=0)
    low_confidence: int = Field(ge=0)

    @classmethod
    def from_landmarks(cls, landmarks: list[ResolvedLandmark]) -> "TourQualityMetrics":
        buckets = [landmark.confidence_bucket for landmark in landmarks]
        return cls(
            total_landmarks=len(landmarks),
            high_confidence=buckets.count(ConfidenceBucket.HIGH),
            medium_confidence=buckets.count(ConfidenceBucket.MEDIUM),
            low_confidence=buckets.count(ConfidenceBucket.LOW),
        )


class LandmarkSuggestions(BaseModel):
    """Output of the suggestion service for one destination."""

    destination: str
    landmarks: list[LandmarkCandidate] = Field(min_length=1)
    guide_system_prompt: str


class TourResolution(BaseModel):
    """
    Final result of resolving a destination into a tour.

    This is what the API returns and what the persistence sink stores.
    """

    tour_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    destination: str
    landmarks: list[ResolvedLandmark]
    quality_metrics: TourQualityMetrics
    fallbacks_used: list[str] = Field(
        default_factory=list, description="Fallback layers used, de-duplicated in order of first use"
    )
    processing_time_ms: int = Field(ge=0)
    guide_system_prompt: str = ""
    city_center: Optional[CityCenterReference] = None
    degradation_level: str = Field(description="Degradation level name when the run finished")
    created_at: datetime = Field(default_factory=_utcnow)
