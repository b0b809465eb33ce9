"""
Coordinate helpers: validation, haversine distance and plausibility.
"""

import math
from typing import Any, Optional

import structlog

from tour_resolver.models.landmark_models import Coordinates

logger = structlog.get_logger(__name__)

EARTH_RADIUS_KM = 6371.0
MIN_CONFIDENCE = 0.1


def validate_coordinates(value: Any) -> Optional[Coordinates]:
    """
    Normalise a coordinate value to (lng, lat), or None if unusable.

    Accepts a two-item sequence in (lng, lat) order, or a mapping with
    lng/lat or longitude/latitude keys. Values must be finite and within
    [-180, 180] / [-90, 90].
    """
    if value is None:
        return None
    try:
        if isinstance(value, dict):
            lng = value.get("lng", value.get("longitude"))
            lat = value.get("lat", value.get("latitude"))
        elif isinstance(value, (list, tuple)) and len(value) == 2:
            lng, lat = value
        else:
            return None
        if lng is None or lat is None or isinstance(lng, bool) or isinstance(lat, bool):
            return None
        lng, lat = float(lng), float(lat)
    except (TypeError, ValueError):
        return None

    if not (math.isfinite(lng) and math.isfinite(lat)):
        return None
    if not (-180.0 <= lng <= 180.0 and -90.0 <= lat <= 90.0):
        return None
    return (lng, lat)


def haversine_km(a: Coordinates, b: Coordinates) -> float:
    """Great-circle distance in kilometres between two (lng, lat) points."""
    lng1, lat1 = map(math.radians, a)
    lng2, lat2 = map(math.radians, b)
    dlat = lat2 - lat1
    dlng = lng2 - lng1
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlng / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(h)))


def apply_plausibility(
    confidence: float,
    coordinates: Coordinates,
    city_center: Optional[Coordinates],
    max_distance_km: float = 100.0,
    penalty: float = 0.3,
) -> tuple[float, Optional[float]]:
    """
    Penalise coordinates that are implausibly far from the city centre.

    Returns:
        (adjusted confidence, distance in km or None without a centre)
    """
    if city_center is None:
        return confidence, None
    distance = haversine_km(coordinates, city_center)
    if distance <= max_distance_km:
        return confidence, distance
    adjusted = max(MIN_CONFIDENCE, round(confidence - penalty, 6))
    return adjusted, distance
