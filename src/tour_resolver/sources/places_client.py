"""
Google Places API (New) text search client.

POST /v1/places:searchText
    headers: X-Goog-Api-Key, X-Goog-FieldMask
    body:    {"textQuery": "...", "maxResultCount": 5,
              "locationBias": {"circle": {"center": {...}, "radius": 50000}}}

An empty ``places`` list is a normal "not found", returned as [].
"""

from typing import Optional

import structlog

from tour_resolver.models.landmark_models import Coordinates
from tour_resolver.models.source_models import CoordinateMatch
from tour_resolver.resolution.geo import validate_coordinates
from tour_resolver.sources.base_client import BaseSourceClient

logger = structlog.get_logger(__name__)

FIELD_MASK = ",".join(
    [
        "places.id",
        "places.displayName",
        "places.formattedAddress",
        "places.location",
        "places.rating",
        "places.types",
        "places.photos",
    ]
)


class PlacesClient(BaseSourceClient):
    """Text search against the Places API."""

    source_name = "places"

    def __init__(
        self,
        base_url: str = "https://places.googleapis.com",
        api_key: str = "",
        max_results: int = 5,
        location_bias_radius_m: float = 50000.0,
        max_photo_references: int = 3,
        **kwargs,
    ):
        super().__init__(base_url, api_key, **kwargs)
        self.max_results = max_results
        self.location_bias_radius_m = location_bias_radius_m
        self.max_photo_references = max_photo_references

    def build_payload(self, query: str, bias_center: Optional[Coordinates] = None) -> dict:
        payload: dict = {"textQuery": query, "maxResultCount": self.max_results}
        if bias_center is not None:
            lng, lat = bias_center
            payload["locationBias"] = {
                "circle": {
                    "center": {"latitude": lat, "longitude": lng},
                    "radius": self.location_bias_radius_m,
                }
            }
        return payload

    def parse_place(self, place: dict) -> Optional[CoordinateMatch]:
        """Convert one API place to a CoordinateMatch, or None without valid coordinates."""
        location = place.get("location") or {}
        coordinates = validate_coordinates(
            {"lng": location.get("longitude"), "lat": location.get("latitude")}
        )
        if coordinates is None:
            return None

        photos = place.get("photos") or []
        display_name = place.get("displayName") or {}
        return CoordinateMatch(
            coordinates=coordinates,
            place_identifier=place.get("id"),
            display_name=display_name.get("text"),
            formatted_address=place.get("formattedAddress"),
            rating=place.get("rating"),
            photo_references=[p["name"] for p in photos if p.get("name")][: self.max_photo_references],
            type_tags=list(place.get("types") or []),
        )

    async def search_text(
        self, query: str, bias_center: Optional[Coordinates] = None
    ) -> list[CoordinateMatch]:
        """
        Search places by free text.

        Args:
            query: e.g. "Eiffel Tower Paris"
            bias_center: Optional (lng, lat) used as location bias

        Returns:
            Matches with valid coordinates, in API ranking order
        """
        self._require_api_key()
        data = await self._request(
            "POST",
            "/v1/places:searchText",
            json=self.build_payload(query, bias_center),
            headers={"X-Goog-Api-Key": self.api_key, "X-Goog-FieldMask": FIELD_MASK},
        )
        places = (data.get("places") or []) if isinstance(data, dict) else []
        matches = [match for match in (self.parse_place(p) for p in places) if match is not None]

        logger.debug(
            "Places search completed",
            query=query,
            results=len(places),
            usable=len(matches),
            biased=bias_center is not None,
        )
        return matches
