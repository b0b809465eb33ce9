"""Integration tests for the Google source clients.

Requires GOOGLE_MAPS_API_KEY (Places, Geocoding) and GOOGLE_AI_API_KEY (Gemini).
"""

import pytest

from tour_resolver.resolution.geo import haversine_km
from tour_resolver.sources.gemini_client import GeminiClient
from tour_resolver.sources.geocoding_client import GeocodingClient
from tour_resolver.sources.places_client import PlacesClient
from tour_resolver.sources.text_utils import parse_coordinate_pair

pytestmark = pytest.mark.integration

PARIS_CENTER = (2.3522, 48.8566)


@pytest.mark.asyncio
async def test_places_finds_eiffel_tower(maps_api_key):
    client = PlacesClient(api_key=maps_api_key, timeout=30)
    try:
        matches = await client.search_text("Eiffel Tower Paris", PARIS_CENTER)
    finally:
        await client.close()

    assert matches
    assert haversine_km(matches[0].coordinates, PARIS_CENTER) < 10
    assert matches[0].place_identifier


@pytest.mark.asyncio
async def test_geocoding_resolves_city(maps_api_key):
    client = GeocodingClient(api_key=maps_api_key, timeout=30)
    try:
        match = await client.geocode("Paris, France")
    finally:
        await client.close()

    assert match is not None
    assert haversine_km(match.coordinates, PARIS_CENTER) < 20


@pytest.mark.asyncio
async def test_geocoding_unknown_address_returns_none(maps_api_key):
    client = GeocodingClient(api_key=maps_api_key, timeout=30)
    try:
        match = await client.geocode("zzqxjv nowhere place 000000")
    finally:
        await client.close()

    assert match is None


@pytest.mark.asyncio
async def test_gemini_returns_coordinates(ai_api_key):
    client = GeminiClient(api_key=ai_api_key, timeout=30)
    try:
        text = await client.generate(
            "Give the coordinates of the Eiffel Tower in Paris as 'longitude, latitude' and nothing else.",
            temperature=0.0,
            max_output_tokens=64,
        )
    finally:
        await client.close()

    assert haversine_km(parse_coordinate_pair(text), PARIS_CENTER) < 20
