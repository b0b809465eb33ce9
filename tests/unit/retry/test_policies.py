"""
Unit tests for RetryPolicy and the default policy table.
"""

import pytest

from tour_resolver.models.enums import ErrorCategory, SourceName
from tour_resolver.retry.policies import (
    DEFAULT_RETRY_POLICIES,
    FALLBACK_RETRY_POLICY,
    RetryPolicy,
    get_policy,
)


def test_default_policy_table():
    places = DEFAULT_RETRY_POLICIES["places"]
    geocoding = DEFAULT_RETRY_POLICIES["geocoding"]
    language_model = DEFAULT_RETRY_POLICIES["language_model"]

    assert (places.max_attempts, places.base_delay_ms, places.max_delay_ms) == (3, 1000, 8000)
    assert (geocoding.max_attempts, geocoding.base_delay_ms, geocoding.max_delay_ms) == (2, 500, 4000)
    assert (language_model.max_attempts, language_model.base_delay_ms, language_model.max_delay_ms) == (2, 2000, 10000)
    assert language_model.jitter_ratio == 0.15


def test_get_policy_accepts_enum_and_string():
    assert get_policy(SourceName.PLACES) is DEFAULT_RETRY_POLICIES["places"]
    assert get_policy("geocoding") is DEFAULT_RETRY_POLICIES["geocoding"]


def test_unknown_source_gets_single_attempt():
    assert get_policy("weather") is FALLBACK_RETRY_POLICY
    assert FALLBACK_RETRY_POLICY.max_attempts == 1


def test_overrides_are_merged():
    policy = get_policy(SourceName.PLACES, {"max_attempts": 5})

    assert policy.max_attempts == 5
    assert policy.base_delay_ms == 1000
    assert DEFAULT_RETRY_POLICIES["places"].max_attempts == 3


# ============================================================================
# Backoff
# ============================================================================


def test_backoff_doubles_until_cap():
    policy = RetryPolicy(max_attempts=6, base_delay_ms=1000, max_delay_ms=8000)

    assert [policy.base_delay_for(n) for n in range(1, 6)] == [1000, 2000, 4000, 8000, 8000]


def test_jitter_bounds():
    policy = RetryPolicy(max_attempts=3, base_delay_ms=1000, max_delay_ms=8000, jitter_ratio=0.1)

    assert policy.delay_for(1, lambda: 0.0) == pytest.approx(900)
    assert policy.delay_for(1, lambda: 0.5) == pytest.approx(1000)
    assert policy.delay_for(1, lambda: 1.0) == pytest.approx(1100)


def test_jittered_delays_never_negative():
    policy = RetryPolicy(max_attempts=2, base_delay_ms=0, max_delay_ms=0, jitter_ratio=1.0)

    assert policy.delay_for(1, lambda: 0.0) == 0.0


def test_data_quality_is_not_retried_by_default():
    for policy in DEFAULT_RETRY_POLICIES.values():
        assert not policy.allows_retry_for(ErrorCategory.DATA_QUALITY)
        assert policy.allows_retry_for(ErrorCategory.NETWORK)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"max_attempts": 0, "base_delay_ms": 1, "max_delay_ms": 1},
        {"max_attempts": 1, "base_delay_ms": -1, "max_delay_ms": 1},
        {"max_attempts": 1, "base_delay_ms": 1, "max_delay_ms": 1, "backoff_multiplier": 0.5},
        {"max_attempts": 1, "base_delay_ms": 1, "max_delay_ms": 1, "jitter_ratio": 1.5},
    ],
)
def test_invalid_policies_rejected(kwargs):
    with pytest.raises(ValueError):
        RetryPolicy(**kwargs)
