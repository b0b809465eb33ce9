"""
Validation exceptions for language model suggestion output.

Any of these aborts the tour: without candidates there is nothing to resolve.
"""

from typing import Any


class ValidationError(Exception):
    """Base exception for suggestion validation failures."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class JSONParseError(ValidationError):
    """Model output is not a JSON object."""

    def __init__(self, message: str, raw_content: str | None = None, parse_error: str | None = None):
        details = {}
        if raw_content:
            details["content_snippet"] = raw_content[:500]
        if parse_error:
            details["parse_error"] = parse_error
        super().__init__(message, details)


class SchemaValidationError(ValidationError):
    """Parsed JSON does not match the landmark suggestions schema."""

    def __init__(self, message: str, validation_errors: list[str] | None = None):
        super().__init__(message, {"validation_errors": validation_errors} if validation_errors else None)
