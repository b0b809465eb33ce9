"""Shared test fixtures and configuration for all tests.

This conftest.py provides common fixtures used across unit and integration tests.
"""

from typing import Callable

import pytest

from tour_resolver.config import Settings
from tour_resolver.models.enums import CoordinateSource
from tour_resolver.models.landmark_models import (
    CityCenterReference,
    LandmarkCandidate,
    ResolvedLandmark,
)

PARIS_CENTER = (2.3522, 48.8566)
EIFFEL_TOWER = (2.2945, 48.8584)


@pytest.fixture
def test_settings() -> Settings:
    """Test settings with safe defaults for local testing.

    No API keys, in-memory health, persistence and metrics disabled.
    """
    return Settings(
        # === Application ===
        APP_NAME="Tour Resolver (Test)",
        APP_VERSION="0.1.0",
        DEBUG=True,
        LOG_LEVEL="DEBUG",
        ENVIRONMENT="development",
        # === Google ===
        GOOGLE_MAPS_API_KEY="test-maps-key",
        GOOGLE_AI_API_KEY="test-ai-key",
        HTTP_TIMEOUT=5,
        # === Degradation ===
        HEALTH_STORE_BACKEND="memory",
        # === Redis ===
        REDIS_URL="redis://localhost:6379/0",
        REDIS_MAX_CONNECTIONS=10,
        # === Feature Flags ===
        PERSISTENCE_ENABLED=False,
        PROMETHEUS_ENABLED=False,
    )


@pytest.fixture
def make_candidate() -> Callable[..., LandmarkCandidate]:
    """Factory for LandmarkCandidate with overridable fields."""

    def _make(name: str = "Eiffel Tower", **overrides) -> LandmarkCandidate:
        fields = {
            "alternative_names": [],
            "description": f"Description of {name}",
            "category": "monument",
        }
        fields.update(overrides)
        return LandmarkCandidate(name=name, **fields)

    return _make


@pytest.fixture
def make_landmark() -> Callable[..., ResolvedLandmark]:
    """Factory for ResolvedLandmark with a given confidence."""

    def _make(
        name: str = "Eiffel Tower",
        confidence: float = 0.9,
        coordinate_source: CoordinateSource = CoordinateSource.PLACES,
        coordinates=EIFFEL_TOWER,
    ) -> ResolvedLandmark:
        return ResolvedLandmark(
            name=name,
            coordinates=coordinates,
            coordinate_source=coordinate_source,
            confidence=confidence,
        )

    return _make


@pytest.fixture
def paris_center() -> CityCenterReference:
    return CityCenterReference(destination="Paris", coordinates=PARIS_CENTER, formatted_address="Paris, France")
