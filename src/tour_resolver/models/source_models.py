"""
Models exchanged between source clients, the cascade and the health store.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from pydantic import BaseModel, ConfigDict, Field

from tour_resolver.models.enums import OutcomeStatus
from tour_resolver.models.landmark_models import Coordinates

if TYPE_CHECKING:
    from tour_resolver.retry.classifier import CategorizedError


# EMA decay applied to success_rate on every observation
SUCCESS_RATE_DECAY = 0.9
UNHEALTHY_AFTER_FAILURES = 3


class CoordinateMatch(BaseModel):
    """A coordinate hit from any source, normalised to one shape."""

    model_config = ConfigDict(frozen=True)

    coordinates: Coordinates
    place_identifier: Optional[str] = None
    display_name: Optional[str] = None
    formatted_address: Optional[str] = None
    rating: Optional[float] = None
    photo_references: list[str] = Field(default_factory=list)
    type_tags: list[str] = Field(default_factory=list)


@dataclass(frozen=True)
class SourceOutcome:
    """
    Outcome of one cascade layer.

    "Not found" is an ordinary outcome, never an exception. ERROR carries the
    categorized failure so the cascade can react to auth and quota errors.
    """

    status: OutcomeStatus
    match: Optional[CoordinateMatch] = None
    error: Optional["CategorizedError"] = None

    @classmethod
    def found(cls, match: CoordinateMatch) -> "SourceOutcome":
        return cls(OutcomeStatus.FOUND, match=match)

    @classmethod
    def not_found(cls) -> "SourceOutcome":
        return cls(OutcomeStatus.NOT_FOUND)

    @classmethod
    def failed(cls, error: "CategorizedError") -> "SourceOutcome":
        return cls(OutcomeStatus.ERROR, error=error)

    @classmethod
    def skipped(cls) -> "SourceOutcome":
        return cls(OutcomeStatus.SKIPPED)


class ServiceHealthRecord(BaseModel):
    """Rolling health of one external source."""

    source: str
    is_healthy: bool = True
    last_response_time_ms: float = Field(default=0.0, ge=0.0)
    success_rate: float = Field(default=1.0, ge=0.0, le=1.0)
    consecutive_failures: int = Field(default=0, ge=0)
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def observe(self, success: bool, response_time_ms: float) -> "ServiceHealthRecord":
        """Return a new record with one call outcome folded in."""
        success_rate = self.success_rate * SUCCESS_RATE_DECAY + (
            (1 - SUCCESS_RATE_DECAY) if success else 0.0
        )
        consecutive_failures = 0 if success else self.consecutive_failures + 1
        return ServiceHealthRecord(
            source=self.source,
            is_healthy=consecutive_failures < UNHEALTHY_AFTER_FAILURES,
            last_response_time_ms=max(0.0, response_time_ms),
            success_rate=min(1.0, max(0.0, success_rate)),
            consecutive_failures=consecutive_failures,
        )
