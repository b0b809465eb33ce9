"""
Unit tests for coordinate validation, distance and plausibility.
"""

import math

import pytest

from tour_resolver.resolution.geo import MIN_CONFIDENCE, apply_plausibility, haversine_km, validate_coordinates

PARIS = (2.3522, 48.8566)
LONDON = (-0.1276, 51.5072)


@pytest.mark.parametrize(
    "value, expected",
    [
        ([2.2945, 48.8584], (2.2945, 48.8584)),
        ((2.2945, 48.8584), (2.2945, 48.8584)),
        (["2.2945", "48.8584"], (2.2945, 48.8584)),
        ({"lng": 2.2945, "lat": 48.8584}, (2.2945, 48.8584)),
        ({"longitude": -74.0445, "latitude": 40.6892}, (-74.0445, 40.6892)),
        ({"lat": 0, "lng": 0}, (0.0, 0.0)),
    ],
)
def test_validate_coordinates_accepts(value, expected):
    assert validate_coordinates(value) == expected


@pytest.mark.parametrize(
    "value",
    [
        None,
        [],
        [1.0],
        [1.0, 2.0, 3.0],
        [181.0, 0.0],
        [0.0, -90.5],
        [math.nan, 1.0],
        [math.inf, 1.0],
        ["east", "north"],
        {"lat": 48.8},
        [True, False],
        "2.29, 48.85",
    ],
)
def test_validate_coordinates_rejects(value):
    assert validate_coordinates(value) is None


def test_haversine_known_distance():
    assert haversine_km(PARIS, LONDON) == pytest.approx(343.5, abs=1.0)
    assert haversine_km(PARIS, PARIS) == 0.0


def test_haversine_origin_to_ten_ten():
    assert haversine_km((0.0, 0.0), (10.0, 10.0)) == pytest.approx(1568.5, abs=1.0)


def test_plausibility_without_center_keeps_confidence():
    assert apply_plausibility(0.9, PARIS, None) == (0.9, None)


def test_plausibility_within_radius_keeps_confidence():
    confidence, distance = apply_plausibility(0.9, (2.2945, 48.8584), PARIS)

    assert confidence == 0.9
    assert distance < 10


def test_plausibility_far_away_subtracts_penalty():
    confidence, distance = apply_plausibility(0.9, LONDON, PARIS)

    assert confidence == pytest.approx(0.6)
    assert distance > 100


def test_plausibility_never_drops_below_floor():
    confidence, _ = apply_plausibility(0.3, (10.0, 10.0), (0.0, 0.0))

    assert confidence == MIN_CONFIDENCE


def test_plausibility_custom_radius_and_penalty():
    confidence, _ = apply_plausibility(0.9, LONDON, PARIS, max_distance_km=500, penalty=0.5)

    assert confidence == 0.9
