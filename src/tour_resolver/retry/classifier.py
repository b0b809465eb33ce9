"""
Error classification.

Maps any failure raised by a source call to one of eight categories by
matching well-known error tags against the uppercased error text. The
category decides whether the retry engine tries again and what the cascade
does next.
"""

import random
import string
import time
from dataclasses import dataclass, field
from typing import Optional

from tour_resolver.models.enums import ErrorCategory
from tour_resolver.monitoring.metrics import classified_errors_total

# Checked in declaration order, first hit wins. TIMEOUT is listed under
# NETWORK too, so a bare "timeout" classifies as NETWORK; timeouts raised by
# this service use DEADLINE_EXCEEDED to land in TIMEOUT.
ERROR_TAGS: dict[ErrorCategory, tuple[str, ...]] = {
    ErrorCategory.NETWORK: (
        "NETWORK_ERROR",
        "CONNECTION_FAILED",
        "TIMEOUT",
        "ECONNRESET",
        "ECONNREFUSED",
    ),
    ErrorCategory.RATE_LIMIT: (
        "OVER_QUERY_LIMIT",
        "RATE_LIMIT_EXCEEDED",
        "TOO_MANY_REQUESTS",
        "QUOTA_EXCEEDED",
    ),
    ErrorCategory.AUTHENTICATION: (
        "INVALID_REQUEST",
        "REQUEST_DENIED",
        "UNAUTHORIZED",
        "FORBIDDEN",
    ),
    ErrorCategory.DATA_QUALITY: (
        "ZERO_RESULTS",
        "INVALID_REQUEST",
        "NOT_FOUND",
        "INVALID_COORDINATES",
    ),
    ErrorCategory.SERVICE_UNAVAILABLE: (
        "SERVICE_UNAVAILABLE",
        "INTERNAL_ERROR",
        "BACKEND_ERROR",
    ),
    ErrorCategory.TIMEOUT: ("TIMEOUT", "DEADLINE_EXCEEDED", "REQUEST_TIMEOUT"),
    ErrorCategory.QUOTA_EXCEEDED: (
        "QUOTA_EXCEEDED",
        "BILLING_NOT_ENABLED",
        "DAILY_LIMIT_EXCEEDED",
    ),
    ErrorCategory.UNKNOWN: (),
}

NON_RETRYABLE_CATEGORIES = frozenset(
    {ErrorCategory.AUTHENTICATION, ErrorCategory.QUOTA_EXCEEDED}
)

SUGGESTED_ACTIONS: dict[ErrorCategory, str] = {
    ErrorCategory.NETWORK: "Retry with exponential backoff",
    ErrorCategory.RATE_LIMIT: "Back off and retry after a delay",
    ErrorCategory.AUTHENTICATION: "Check API keys and permissions",
    ErrorCategory.DATA_QUALITY: "Fall through to the next resolution layer",
    ErrorCategory.SERVICE_UNAVAILABLE: "Switch to another source or degrade",
    ErrorCategory.TIMEOUT: "Retry within the degradation timeout budget",
    ErrorCategory.QUOTA_EXCEEDED: "Switch to another source and notify administrators",
    ErrorCategory.UNKNOWN: "Log for investigation and retry",
}


@dataclass(frozen=True)
class HandlingStrategy:
    """What the service does about a category, and what users are told."""

    should_retry: bool
    max_retries: int
    fallback_action: str
    user_message: str


HANDLING_STRATEGIES: dict[ErrorCategory, HandlingStrategy] = {
    ErrorCategory.NETWORK: HandlingStrategy(
        True, 3, "use_cached_coordinates",
        "Network connectivity issues detected, using cached data where available",
    ),
    ErrorCategory.RATE_LIMIT: HandlingStrategy(
        True, 2, "slow_down_requests",
        "API rate limits reached, processing at reduced speed",
    ),
    ErrorCategory.AUTHENTICATION: HandlingStrategy(
        False, 0, "use_fallback_service",
        "API authentication issue, switching to backup services",
    ),
    ErrorCategory.DATA_QUALITY: HandlingStrategy(
        False, 0, "skip_landmark",
        "Some landmarks could not be located precisely",
    ),
    ErrorCategory.SERVICE_UNAVAILABLE: HandlingStrategy(
        True, 2, "use_backup_service",
        "Primary service unavailable, using backup systems",
    ),
    ErrorCategory.TIMEOUT: HandlingStrategy(
        True, 2, "reduce_timeout",
        "Request timeouts detected, optimizing performance",
    ),
    ErrorCategory.QUOTA_EXCEEDED: HandlingStrategy(
        False, 0, "use_free_service",
        "API quota exceeded, switching to alternative services",
    ),
    ErrorCategory.UNKNOWN: HandlingStrategy(
        True, 1, "log_and_continue",
        "Unexpected error encountered, continuing with available data",
    ),
}


@dataclass(frozen=True)
class CategorizedError:
    """A failure with its category, retry verdict and correlation id."""

    category: ErrorCategory
    is_retryable: bool
    suggested_action: str
    correlation_id: str
    message: str
    original_error: Optional[BaseException] = field(default=None, compare=False)

    @property
    def strategy(self) -> HandlingStrategy:
        return HANDLING_STRATEGIES[self.category]

    def log_context(self) -> dict:
        return {
            "error_category": self.category.value,
            "correlation_id": self.correlation_id,
            "retryable": self.is_retryable,
            "error": self.message,
        }


def generate_correlation_id() -> str:
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"err_{int(time.time() * 1000)}_{suffix}"


class ErrorClassifier:
    """Classify failures into ErrorCategory values."""

    def __init__(self, tags: dict[ErrorCategory, tuple[str, ...]] | None = None):
        self.tags = tags or ERROR_TAGS

    @staticmethod
    def error_text(error: BaseException | str) -> str:
        if isinstance(error, str):
            return error
        text = str(error)
        return text or type(error).__name__

    def categorize(self, text: str) -> ErrorCategory:
        upper = text.upper()
        for category, tags in self.tags.items():
            if any(tag in upper for tag in tags):
                return category
        return ErrorCategory.UNKNOWN

    def classify(self, error: BaseException | str) -> CategorizedError:
        """
        Classify a raised exception or a raw error string.

        Args:
            error: The failure. SourceError renders as "{code} {message}".

        Returns:
            CategorizedError with a fresh correlation id
        """
        text = self.error_text(error)
        category = self.categorize(text)
        classified_errors_total.labels(category=category.value).inc()
        return CategorizedError(
            category=category,
            is_retryable=category not in NON_RETRYABLE_CATEGORIES,
            suggested_action=SUGGESTED_ACTIONS[category],
            correlation_id=generate_correlation_id(),
            message=text,
            original_error=error if isinstance(error, BaseException) else None,
        )

    @staticmethod
    def strategy_for(category: ErrorCategory) -> HandlingStrategy:
        return HANDLING_STRATEGIES[category]
