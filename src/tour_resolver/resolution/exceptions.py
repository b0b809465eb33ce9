"""
Exceptions that can reach callers of the tour orchestrator.

Layer failures inside the cascade never escape; only problems that leave
nothing to resolve do.
"""

from typing import Any, Optional

from tour_resolver.models.enums import ErrorCategory


class TourResolutionError(Exception):
    """Base exception for fatal tour resolution failures."""

    user_message = "The tour could not be generated."

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        user_message: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if user_message:
            self.user_message = user_message


class InvalidDestinationError(TourResolutionError):
    """Destination is blank."""

    user_message = "Please provide a destination."


class SuggestionError(TourResolutionError):
    """
    The suggestion service failed or returned unusable output.

    Attributes:
        category: Error category when the failure was a source error
    """

    user_message = "Landmark suggestions are unavailable right now. Please try again shortly."

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        user_message: Optional[str] = None,
        category: Optional[ErrorCategory] = None,
    ):
        super().__init__(message, details, user_message)
        self.category = category
