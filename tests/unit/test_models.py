"""
Unit tests for domain models.
"""

import pytest
from pydantic import ValidationError

from tour_resolver.models.enums import ConfidenceBucket, CoordinateSource
from tour_resolver.models.landmark_models import (
    LandmarkCandidate,
    ResolvedLandmark,
    TourQualityMetrics,
    TourResolution,
)
from tour_resolver.models.source_models import ServiceHealthRecord


@pytest.mark.parametrize(
    "confidence,bucket",
    [
        (1.0, ConfidenceBucket.HIGH),
        (0.8, ConfidenceBucket.HIGH),
        (0.79, ConfidenceBucket.MEDIUM),
        (0.5, ConfidenceBucket.MEDIUM),
        (0.49, ConfidenceBucket.LOW),
        (0.1, ConfidenceBucket.LOW),
    ],
)
def test_confidence_bucket_boundaries(confidence, bucket):
    assert ConfidenceBucket.for_score(confidence) is bucket


def test_quality_metrics_from_landmarks(make_landmark):
    landmarks = [
        make_landmark("A", 0.9),
        make_landmark("B", 0.8),
        make_landmark("C", 0.6),
        make_landmark("D", 0.1, coordinate_source=CoordinateSource.DEFAULT, coordinates=(0.0, 0.0)),
    ]

    metrics = TourQualityMetrics.from_landmarks(landmarks)

    assert metrics.total_landmarks == 4
    assert metrics.high_confidence == 2
    assert metrics.medium_confidence == 1
    assert metrics.low_confidence == 1


def test_quality_metrics_empty():
    metrics = TourQualityMetrics.from_landmarks([])

    assert metrics.total_landmarks == 0
    assert metrics.high_confidence == metrics.medium_confidence == metrics.low_confidence == 0


class TestLandmarkCandidate:
    def test_name_is_stripped(self):
        assert LandmarkCandidate(name="  Louvre  ").name == "Louvre"

    def test_blank_name_rejected(self):
        with pytest.raises(ValidationError):
            LandmarkCandidate(name="   ")

    def test_extra_fields_rejected(self):
        with pytest.raises(ValidationError):
            LandmarkCandidate(name="Louvre", coordinates=[1, 2])

    def test_defaults(self):
        candidate = LandmarkCandidate(name="Louvre")

        assert candidate.alternative_names == []
        assert candidate.category == "landmark"


class TestResolvedLandmark:
    def test_ids_are_unique(self, make_landmark):
        assert make_landmark().id != make_landmark().id

    def test_confidence_out_of_range(self):
        with pytest.raises(ValidationError):
            ResolvedLandmark(
                name="X",
                coordinates=(0.0, 0.0),
                coordinate_source=CoordinateSource.PLACES,
                confidence=1.5,
            )


def test_tour_resolution_json_round_trip(make_landmark):
    landmarks = [make_landmark()]
    tour = TourResolution(
        destination="Paris",
        landmarks=landmarks,
        quality_metrics=TourQualityMetrics.from_landmarks(landmarks),
        fallbacks_used=["geocoding"],
        processing_time_ms=10,
        degradation_level="FULL_SERVICE",
    )

    restored = TourResolution.model_validate_json(tour.model_dump_json())

    assert restored == tour
    assert restored.landmarks[0].coordinates == (2.2945, 48.8584)


class TestServiceHealthRecord:
    def test_success_keeps_rate_at_one(self):
        record = ServiceHealthRecord(source="places").observe(True, 120.0)

        assert record.success_rate == pytest.approx(1.0)
        assert record.last_response_time_ms == 120.0
        assert record.is_healthy

    def test_failure_decays_rate(self):
        record = ServiceHealthRecord(source="places").observe(False, 50.0)

        assert record.success_rate == pytest.approx(0.9)
        assert record.consecutive_failures == 1
        assert record.is_healthy

    def test_unhealthy_after_three_failures(self):
        record = ServiceHealthRecord(source="places")
        for _ in range(3):
            record = record.observe(False, 50.0)

        assert not record.is_healthy
        assert record.consecutive_failures == 3

    def test_success_resets_failures(self):
        record = ServiceHealthRecord(source="places")
        for _ in range(3):
            record = record.observe(False, 50.0)

        record = record.observe(True, 50.0)

        assert record.is_healthy
        assert record.consecutive_failures == 0
        assert record.success_rate == pytest.approx(0.9 ** 3 * 0.9 + 0.1)
