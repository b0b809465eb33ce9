"""
Text utilities for language model output.

Models wrap JSON in Markdown fences, add a sentence before it, or answer a
coordinate question in prose. These helpers dig out the payload.
"""

import json
import re

from tour_resolver.models.landmark_models import Coordinates
from tour_resolver.resolution.geo import validate_coordinates
from tour_resolver.sources.exceptions import CoordinateParseError

_FENCE_RE = re.compile(r"```(?:json|JSON)?\s*(.*?)```", re.DOTALL)
_NUMBER = r"[-+]?\d{1,3}(?:\.\d+)?"
_PAIR_RE = re.compile(rf"({_NUMBER})\s*[,;\s]\s*({_NUMBER})")


def extract_json_block(text: str) -> str:
    """
    Return the most likely JSON payload inside ``text``.

    Prefers a fenced code block, then the outermost {...} or [...] span.
    Falls back to the stripped input.
    """
    if not text:
        return ""
    fenced = _FENCE_RE.search(text)
    if fenced:
        return fenced.group(1).strip()

    stripped = text.strip()
    starts = [i for i in (stripped.find("{"), stripped.find("[")) if i != -1]
    if not starts:
        return stripped
    start = min(starts)
    closer = "}" if stripped[start] == "{" else "]"
    end = stripped.rfind(closer)
    if end <= start:
        return stripped
    return stripped[start : end + 1]


def _coordinates_from_json(payload: object) -> Coordinates | None:
    if isinstance(payload, dict) and "coordinates" in payload:
        payload = payload["coordinates"]
    return validate_coordinates(payload)


def parse_coordinate_pair(text: str) -> Coordinates:
    """
    Parse a (longitude, latitude) pair from model output.

    Accepts "[2.2945, 48.8584]", "2.2945, 48.8584", {"lng": .., "lat": ..}
    or {"coordinates": [lng, lat]}, optionally fenced.

    Raises:
        CoordinateParseError: nothing parseable or values out of range
    """
    if not text or not text.strip():
        raise CoordinateParseError("model returned no coordinates")

    candidate = extract_json_block(text)
    try:
        coordinates = _coordinates_from_json(json.loads(candidate))
    except ValueError:
        coordinates = None
    if coordinates is not None:
        return coordinates

    match = _PAIR_RE.search(candidate)
    if match:
        coordinates = validate_coordinates([match.group(1), match.group(2)])
        if coordinates is not None:
            return coordinates

    raise CoordinateParseError(
        "model output is not a valid coordinate pair",
        details={"content_snippet": text[:200]},
    )


def normalize_name(name: str) -> str:
    """Case- and whitespace-insensitive key for landmark names."""
    return " ".join(name.split()).casefold()
