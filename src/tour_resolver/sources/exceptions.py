"""
Custom exceptions for the external source clients.

Every exception carries a machine-readable ``code``. The error classifier
matches on ``"{code} {message}"``, so codes use the vocabulary the Google
APIs themselves return (OVER_QUERY_LIMIT, REQUEST_DENIED, ...).
"""


class SourceError(Exception):
    """
    Base exception for all source client errors.

    Catch this to handle any failure coming from Places, Geocoding or Gemini.
    """

    default_code = "UNKNOWN_ERROR"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        source: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.source = source
        self.details = details or {}

    def __str__(self) -> str:
        return f"{self.code} {self.message}"


class SourceConnectionError(SourceError):
    """Unable to reach the upstream API (DNS, refused, reset)."""

    default_code = "CONNECTION_FAILED"


class SourceTimeoutError(SourceError):
    """
    The call exceeded its timeout budget.

    Uses DEADLINE_EXCEEDED so it classifies as TIMEOUT rather than NETWORK.
    """

    default_code = "DEADLINE_EXCEEDED"


class SourceRateLimitError(SourceError):
    """HTTP 429 or OVER_QUERY_LIMIT."""

    default_code = "RATE_LIMIT_EXCEEDED"


class SourceAuthError(SourceError):
    """API key missing, invalid or not allowed for this API."""

    default_code = "REQUEST_DENIED"


class SourceUnavailableError(SourceError):
    """Upstream 5xx."""

    default_code = "SERVICE_UNAVAILABLE"


class SourceResponseError(SourceError):
    """The upstream answered, but not in a shape we can use."""

    default_code = "INVALID_RESPONSE"


class CoordinateParseError(SourceError):
    """
    The language model did not return a usable coordinate pair.

    Classifies as DATA_QUALITY, which no default retry policy retries.
    """

    default_code = "INVALID_COORDINATES"


class SourceDisabledError(SourceError):
    """
    The source is switched off by the degradation level or an open circuit
    breaker. No request was sent.
    """

    default_code = "SERVICE_UNAVAILABLE"
