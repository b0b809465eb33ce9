"""
FastAPI exception handlers.

Maps tour resolution errors to HTTP status codes with a user-facing message.
"""

from datetime import datetime, timezone

import structlog
from fastapi import Request, status
from fastapi.responses import JSONResponse

from tour_resolver.resolution.exceptions import InvalidDestinationError, SuggestionError, TourResolutionError

logger = structlog.get_logger(__name__)


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def _error_body(error: str, message: str, details: dict | None = None) -> dict:
    return {
        "error": error,
        "message": message,
        "details": details or {},
        "timestamp": _timestamp(),
    }


async def invalid_destination_handler(request: Request, exc: InvalidDestinationError) -> JSONResponse:
    logger.warning("Invalid destination", error=exc.message)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body("invalid_destination", exc.user_message),
    )


async def suggestion_error_handler(request: Request, exc: SuggestionError) -> JSONResponse:
    """Upstream language model failed: 502 Bad Gateway."""
    logger.error(
        "Suggestion failure returned to client",
        error=exc.message,
        category=exc.category.value if exc.category else None,
    )
    details = {}
    if "correlation_id" in exc.details:
        details["correlation_id"] = exc.details["correlation_id"]
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content=_error_body("suggestions_unavailable", exc.user_message, details),
    )


async def tour_resolution_error_handler(request: Request, exc: TourResolutionError) -> JSONResponse:
    logger.error("Tour resolution failed", error=exc.message, error_type=type(exc).__name__)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body("tour_resolution_failed", exc.user_message),
    )


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unexpected error", error_type=type(exc).__name__)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body("internal_error", "An unexpected error occurred"),
    )


# Exception handler mapping for FastAPI app.add_exception_handler()
EXCEPTION_HANDLERS = {
    InvalidDestinationError: invalid_destination_handler,
    SuggestionError: suggestion_error_handler,
    TourResolutionError: tour_resolution_error_handler,
    Exception: generic_error_handler,
}
