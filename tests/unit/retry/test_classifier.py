"""
Unit tests for ErrorClassifier.
"""

import re

import pytest

from tour_resolver.models.enums import ErrorCategory
from tour_resolver.retry.classifier import (
    HANDLING_STRATEGIES,
    NON_RETRYABLE_CATEGORIES,
    SUGGESTED_ACTIONS,
    ErrorClassifier,
    generate_correlation_id,
)
from tour_resolver.sources.exceptions import (
    CoordinateParseError,
    SourceAuthError,
    SourceConnectionError,
    SourceError,
    SourceRateLimitError,
    SourceTimeoutError,
    SourceUnavailableError,
)


@pytest.fixture
def classifier() -> ErrorClassifier:
    return ErrorClassifier()


# ============================================================================
# Categorization
# ============================================================================


@pytest.mark.parametrize(
    "text, expected",
    [
        ("NETWORK_ERROR while sending", ErrorCategory.NETWORK),
        ("ECONNRESET", ErrorCategory.NETWORK),
        ("request timeout", ErrorCategory.NETWORK),
        ("OVER_QUERY_LIMIT", ErrorCategory.RATE_LIMIT),
        ("too_many_requests", ErrorCategory.RATE_LIMIT),
        ("REQUEST_DENIED: key invalid", ErrorCategory.AUTHENTICATION),
        ("Forbidden", ErrorCategory.AUTHENTICATION),
        ("INVALID_REQUEST", ErrorCategory.AUTHENTICATION),
        ("ZERO_RESULTS", ErrorCategory.DATA_QUALITY),
        ("INVALID_COORDINATES", ErrorCategory.DATA_QUALITY),
        ("BACKEND_ERROR", ErrorCategory.SERVICE_UNAVAILABLE),
        ("DEADLINE_EXCEEDED", ErrorCategory.TIMEOUT),
        ("BILLING_NOT_ENABLED", ErrorCategory.QUOTA_EXCEEDED),
        ("something odd happened", ErrorCategory.UNKNOWN),
    ],
)
def test_categorize_by_tag(classifier, text, expected):
    """Tags match case-insensitively, first category in order wins."""
    assert classifier.categorize(text) == expected


def test_quota_exceeded_text_matches_rate_limit_first(classifier):
    """QUOTA_EXCEEDED is also a RATE_LIMIT tag, which is checked first."""
    assert classifier.categorize("QUOTA_EXCEEDED") == ErrorCategory.RATE_LIMIT


@pytest.mark.parametrize(
    "error, expected",
    [
        (SourceConnectionError("places unreachable"), ErrorCategory.NETWORK),
        (SourceRateLimitError("slow down"), ErrorCategory.RATE_LIMIT),
        (SourceAuthError("no key"), ErrorCategory.AUTHENTICATION),
        (SourceUnavailableError("upstream 503"), ErrorCategory.SERVICE_UNAVAILABLE),
        (SourceTimeoutError("budget exhausted"), ErrorCategory.TIMEOUT),
        (CoordinateParseError("not a pair"), ErrorCategory.DATA_QUALITY),
        (SourceError("daily cap", code="DAILY_LIMIT_EXCEEDED"), ErrorCategory.QUOTA_EXCEEDED),
    ],
)
def test_classify_source_errors_by_code(classifier, error, expected):
    categorized = classifier.classify(error)

    assert categorized.category == expected
    assert categorized.original_error is error
    assert categorized.message == str(error)


def test_classify_plain_exception_without_message_uses_type_name(classifier):
    categorized = classifier.classify(RuntimeError())

    assert categorized.message == "RuntimeError"
    assert categorized.category == ErrorCategory.UNKNOWN


def test_classify_accepts_raw_string(classifier):
    categorized = classifier.classify("OVER_QUERY_LIMIT")

    assert categorized.category == ErrorCategory.RATE_LIMIT
    assert categorized.original_error is None


# ============================================================================
# Retry verdict and handling
# ============================================================================


@pytest.mark.parametrize("category", list(ErrorCategory))
def test_retryable_unless_auth_or_quota(classifier, category):
    """Tags shared between categories resolve to the first one; the verdict follows it."""
    categorized = classifier.classify(" ".join(classifier.tags[category]) or "mystery")

    assert categorized.is_retryable is (categorized.category not in NON_RETRYABLE_CATEGORIES)
    assert categorized.suggested_action == SUGGESTED_ACTIONS[categorized.category]


def test_every_category_has_a_handling_strategy():
    assert set(HANDLING_STRATEGIES) == set(ErrorCategory)
    assert HANDLING_STRATEGIES[ErrorCategory.AUTHENTICATION].should_retry is False
    assert HANDLING_STRATEGIES[ErrorCategory.NETWORK].max_retries == 3


def test_strategy_and_log_context(classifier):
    categorized = classifier.classify(SourceAuthError("bad key"))

    assert categorized.strategy == classifier.strategy_for(ErrorCategory.AUTHENTICATION)
    context = categorized.log_context()
    assert context["error_category"] == "AUTHENTICATION"
    assert context["retryable"] is False
    assert context["correlation_id"] == categorized.correlation_id


def test_correlation_ids_are_unique_and_well_formed():
    ids = {generate_correlation_id() for _ in range(50)}

    assert len(ids) == 50
    for correlation_id in ids:
        assert re.fullmatch(r"err_\d+_[a-z0-9]{9}", correlation_id)
