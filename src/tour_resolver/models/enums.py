"""
Enumerations for Tour Resolver data models.

All enums are closed sets. String values are what appears in logs, metrics
labels and persisted JSON.
"""

from enum import Enum


class SourceName(str, Enum):
    """
    External sources the degradation controller can enable or disable.

    CACHE is the in-process TTL cache of earlier resolutions; it is the only
    source left at CACHE_ONLY level.
    """

    PLACES = "places"
    GEOCODING = "geocoding"
    LANGUAGE_MODEL = "language_model"
    CACHE = "cache"


class CoordinateSource(str, Enum):
    """Which layer produced a landmark's coordinates."""

    PLACES = "places"
    GEOCODING = "geocoding"
    LANGUAGE_MODEL = "language_model"
    DEFAULT = "default"  # terminal (0, 0) placeholder


class ErrorCategory(str, Enum):
    """
    Failure taxonomy used by the error classifier.

    Declaration order is the matching order.
    """

    NETWORK = "NETWORK"
    RATE_LIMIT = "RATE_LIMIT"
    AUTHENTICATION = "AUTHENTICATION"
    DATA_QUALITY = "DATA_QUALITY"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    TIMEOUT = "TIMEOUT"
    QUOTA_EXCEEDED = "QUOTA_EXCEEDED"
    UNKNOWN = "UNKNOWN"


class OutcomeStatus(str, Enum):
    """Result of one cascade layer."""

    FOUND = "found"
    NOT_FOUND = "not_found"
    ERROR = "error"
    SKIPPED = "skipped"  # layer had nothing to query


class FallbackName(str, Enum):
    """Names recorded in fallbacks_used when a non-primary layer runs."""

    ALTERNATIVE_NAMES = "alternative_names"
    GEOCODING = "geocoding"
    GEMINI_COORDINATES = "gemini_coordinates"
    DEFAULT = "default"


class ConfidenceBucket(str, Enum):
    """Coarse confidence buckets used in tour quality metrics."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @classmethod
    def for_score(cls, confidence: float) -> "ConfidenceBucket":
        if confidence >= 0.8:
            return cls.HIGH
        if confidence >= 0.5:
            return cls.MEDIUM
        return cls.LOW
