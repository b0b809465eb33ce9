"""
API request and response models.

TourResolution itself is the payload of tour responses; these models add
request validation and the health/admin shapes.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from tour_resolver.models.landmark_models import TourResolution


class TourRequest(BaseModel):
    """Request body for POST /tours."""

    destination: str = Field(
        min_length=1,
        max_length=200,
        description="City or region to build a tour for",
        examples=["Paris", "Kyoto, Japan"],
    )

    @field_validator("destination")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = " ".join(value.split())
        if not value:
            raise ValueError("destination must not be blank")
        return value


class TourResponse(BaseModel):
    status: str = Field(default="success", examples=["success"])
    tour: TourResolution


class TourListResponse(BaseModel):
    tours: list[TourResolution]
    count: int = Field(ge=0)


class HealthResponse(BaseModel):
    """Response for GET /health."""

    status: str = Field(description="ok, degraded or minimal", examples=["ok"])
    version: str
    degradation: dict[str, Any] = Field(description="Controller state, per-source health and cache size")
    circuit_breakers: dict[str, dict[str, Any]] = Field(default_factory=dict)


class DegradationOverrideRequest(BaseModel):
    """Request body for POST /admin/degradation-level."""

    level: int = Field(ge=0, le=4, description="0 = FULL_SERVICE ... 4 = MINIMAL_SERVICE")


class DegradationOverrideResponse(BaseModel):
    level: int
    name: str
    enabled_sources: list[str]
    timeout_ms: int
    note: Optional[str] = Field(
        default="Override lasts until the next source health update",
    )


class ErrorResponse(BaseModel):
    error: str
    message: str
    details: dict[str, Any] = Field(default_factory=dict)
    timestamp: str
