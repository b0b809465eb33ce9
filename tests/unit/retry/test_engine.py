"""
Unit tests for RetryEngine.

Sleep is replaced by an AsyncMock so backoff delays are observed, not waited.
"""

import asyncio
from unittest.mock import AsyncMock, Mock

import pytest

from tour_resolver.models.enums import ErrorCategory, SourceName
from tour_resolver.retry.engine import RetryEngine
from tour_resolver.retry.exceptions import RetryExhausted
from tour_resolver.retry.metadata import RetryResult
from tour_resolver.retry.policies import RetryPolicy
from tour_resolver.sources.exceptions import (
    CoordinateParseError,
    SourceAuthError,
    SourceConnectionError,
    SourceError,
)


def failing_then(successes_after: int, error: Exception, value="ok"):
    """Operation that raises ``error`` ``successes_after`` times, then returns ``value``."""
    calls = {"count": 0}

    async def operation():
        calls["count"] += 1
        if calls["count"] <= successes_after:
            raise error
        return value

    return operation, calls


# ============================================================================
# Success Scenarios
# ============================================================================


@pytest.mark.asyncio
async def test_success_first_attempt(retry_engine, no_sleep):
    operation = AsyncMock(return_value=["match"])

    result = await retry_engine.execute_with_retry(operation, SourceName.PLACES)

    assert result.success
    assert result.data == ["match"]
    assert result.attempts == 1
    assert result.retries == 0
    assert result.delays_ms == []
    assert result.categorized_error is None
    no_sleep.assert_not_awaited()


@pytest.mark.asyncio
async def test_success_after_transient_failures(retry_engine):
    operation, calls = failing_then(2, SourceConnectionError("reset"), value="found")

    result = await retry_engine.execute_with_retry(operation, SourceName.PLACES)

    assert result.success
    assert result.data == "found"
    assert result.attempts == 3
    assert calls["count"] == 3
    assert result.unwrap() == "found"


# ============================================================================
# Failure Scenarios
# ============================================================================


@pytest.mark.asyncio
async def test_retryable_failure_exhausts_policy(retry_engine, no_sleep):
    """Places allows 3 attempts: 1000 ms then 2000 ms of backoff."""
    operation, calls = failing_then(99, SourceConnectionError("refused"))

    result = await retry_engine.execute_with_retry(operation, SourceName.PLACES)

    assert not result.success
    assert result.attempts == 3
    assert calls["count"] == 3
    assert result.categorized_error.category == ErrorCategory.NETWORK
    assert isinstance(result.error, SourceConnectionError)
    assert result.delays_ms == [pytest.approx(1000), pytest.approx(2000)]
    assert [c.args[0] for c in no_sleep.await_args_list] == [pytest.approx(1.0), pytest.approx(2.0)]


@pytest.mark.asyncio
async def test_non_retryable_failure_stops_immediately(retry_engine, no_sleep):
    operation, calls = failing_then(99, SourceAuthError("key rejected"))

    result = await retry_engine.execute_with_retry(operation, SourceName.PLACES)

    assert not result.success
    assert result.attempts == 1
    assert calls["count"] == 1
    assert result.categorized_error.category == ErrorCategory.AUTHENTICATION
    assert result.categorized_error.is_retryable is False
    no_sleep.assert_not_awaited()


@pytest.mark.asyncio
async def test_stop_when_ends_retries_early(retry_engine, no_sleep):
    operation, calls = failing_then(99, SourceConnectionError("refused"))
    checks = []

    def stop_when():
        checks.append(calls["count"])
        return calls["count"] >= 2

    result = await retry_engine.execute_with_retry(operation, SourceName.PLACES, stop_when=stop_when)

    assert not result.success
    assert result.attempts == 2
    assert calls["count"] == 2
    assert checks == [1, 2]
    assert no_sleep.await_count == 1


@pytest.mark.asyncio
async def test_stop_when_not_consulted_for_non_retryable_failure(retry_engine):
    operation, _ = failing_then(99, SourceAuthError("key rejected"))
    stop_when = Mock(return_value=True)

    result = await retry_engine.execute_with_retry(operation, SourceName.PLACES, stop_when=stop_when)

    assert result.attempts == 1
    stop_when.assert_not_called()


@pytest.mark.asyncio
async def test_quota_failure_is_not_retried(retry_engine):
    operation, calls = failing_then(99, SourceError("billing off", code="BILLING_NOT_ENABLED"))

    result = await retry_engine.execute_with_retry(operation, SourceName.GEOCODING)

    assert result.attempts == 1
    assert result.categorized_error.category == ErrorCategory.QUOTA_EXCEEDED


@pytest.mark.asyncio
async def test_data_quality_failure_gets_single_attempt(retry_engine):
    operation, calls = failing_then(99, CoordinateParseError("no pair"))

    result = await retry_engine.execute_with_retry(operation, SourceName.LANGUAGE_MODEL)

    assert result.attempts == 1
    assert result.categorized_error.category == ErrorCategory.DATA_QUALITY
    assert result.categorized_error.is_retryable is True


@pytest.mark.asyncio
async def test_unwrap_failed_result_raises_retry_exhausted(retry_engine):
    operation, _ = failing_then(99, SourceConnectionError("down"))

    result = await retry_engine.execute_with_retry(operation, SourceName.GEOCODING)

    with pytest.raises(RetryExhausted) as exc_info:
        result.unwrap()
    assert exc_info.value.result is result
    assert exc_info.value.category == ErrorCategory.NETWORK
    assert "2 attempt(s)" in str(exc_info.value)


@pytest.mark.asyncio
async def test_cancellation_propagates(retry_engine):
    async def operation():
        raise asyncio.CancelledError()

    with pytest.raises(asyncio.CancelledError):
        await retry_engine.execute_with_retry(operation, SourceName.PLACES)


# ============================================================================
# Backoff and overrides
# ============================================================================


@pytest.mark.asyncio
async def test_backoff_is_monotonic_within_jitter():
    sleep = AsyncMock()
    values = iter([0.0, 1.0, 0.0, 1.0])
    engine = RetryEngine(sleep=sleep, random_fn=lambda: next(values))
    operation, _ = failing_then(99, SourceConnectionError("reset"))

    result = await engine.execute_with_retry(
        operation, SourceName.PLACES, policy_override={"max_attempts": 5}
    )

    assert result.attempts == 5
    base = [1000, 2000, 4000, 8000]
    for delay, expected in zip(result.delays_ms, base):
        assert expected * 0.9 <= delay <= expected * 1.1
    assert result.delays_ms == sorted(result.delays_ms)


@pytest.mark.asyncio
async def test_policy_override_limits_attempts(retry_engine):
    operation, calls = failing_then(99, SourceConnectionError("reset"))

    result = await retry_engine.execute_with_retry(
        operation, SourceName.PLACES, policy_override={"max_attempts": 1}
    )

    assert result.attempts == 1
    assert calls["count"] == 1


@pytest.mark.asyncio
async def test_custom_policy_table(no_sleep):
    engine = RetryEngine(
        policies={"weather": RetryPolicy(max_attempts=4, base_delay_ms=10, max_delay_ms=10)},
        sleep=no_sleep,
        random_fn=lambda: 0.5,
    )
    operation, calls = failing_then(99, SourceConnectionError("reset"))

    result = await engine.execute_with_retry(operation, "weather")

    assert result.attempts == 4
    assert result.source_type == "weather"
    assert no_sleep.await_count == 3


# ============================================================================
# RetryResult invariants
# ============================================================================


def test_failed_result_requires_categorized_error():
    with pytest.raises(ValueError):
        RetryResult(source_type="places", success=False, attempts=1, total_time_ms=1.0)


def test_result_requires_at_least_one_attempt():
    with pytest.raises(ValueError):
        RetryResult(source_type="places", success=True, attempts=0, total_time_ms=0.0)


def test_failed_result_without_attempts_is_not_attempted(retry_engine):
    error = SourceError("switched off", source="places")
    result = RetryResult(
        source_type="places",
        success=False,
        attempts=0,
        total_time_ms=0.0,
        error=error,
        categorized_error=retry_engine.classifier.classify(error),
    )

    assert result.retries == 0
    assert not result.attempted


def test_negative_attempts_rejected(retry_engine):
    error = SourceError("boom")
    with pytest.raises(ValueError):
        RetryResult(
            source_type="places",
            success=False,
            attempts=-1,
            total_time_ms=0.0,
            error=error,
            categorized_error=retry_engine.classifier.classify(error),
        )
