"""
Google Geocoding API client.

GET /maps/api/geocode/json?address=...&key=...

The API reports failures in the body ``status`` rather than the HTTP code.
OK yields a match, ZERO_RESULTS yields None, anything else raises a
SourceError whose code is the status string so the classifier sees
OVER_QUERY_LIMIT, REQUEST_DENIED and friends verbatim.
"""

from typing import Optional

import structlog

from tour_resolver.models.source_models import CoordinateMatch
from tour_resolver.resolution.geo import validate_coordinates
from tour_resolver.sources.base_client import BaseSourceClient
from tour_resolver.sources.exceptions import SourceError, SourceResponseError

logger = structlog.get_logger(__name__)


class GeocodingClient(BaseSourceClient):
    """Forward geocoding of free-text addresses."""

    source_name = "geocoding"

    def __init__(self, base_url: str = "https://maps.googleapis.com", api_key: str = "", **kwargs):
        super().__init__(base_url, api_key, **kwargs)

    async def geocode(self, address: str) -> Optional[CoordinateMatch]:
        """
        Geocode ``address``.

        Returns:
            First result as a CoordinateMatch, or None for ZERO_RESULTS

        Raises:
            SourceError: any non-OK status, code = API status
        """
        self._require_api_key()
        data = await self._request(
            "GET",
            "/maps/api/geocode/json",
            params={"address": address, "key": self.api_key},
        )
        if not isinstance(data, dict):
            raise SourceResponseError("geocoding returned an unexpected body", source=self.source_name)
        status = data.get("status")

        if status == "ZERO_RESULTS":
            logger.debug("Geocoding found nothing", address=address)
            return None
        if status != "OK":
            raise SourceError(
                data.get("error_message") or f"geocoding status {status}",
                code=status or "INVALID_RESPONSE",
                source=self.source_name,
                details={"address": address},
            )

        results = data.get("results") or []
        for result in results:
            geometry = result.get("geometry") or {}
            coordinates = validate_coordinates(geometry.get("location"))
            if coordinates is not None:
                return CoordinateMatch(
                    coordinates=coordinates,
                    place_identifier=result.get("place_id"),
                    formatted_address=result.get("formatted_address"),
                    type_tags=list(result.get("types") or []),
                )

        if results:
            raise SourceResponseError(
                "geocoding results carried no usable location",
                source=self.source_name,
                details={"address": address},
            )
        return None
