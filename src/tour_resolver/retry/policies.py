"""
Per-source retry policies.

Delay after failed attempt n is

    min(base_delay_ms * backoff_multiplier ** (n - 1), max_delay_ms)

with symmetric jitter of up to ``jitter_ratio`` of that value, floored at 0.
"""

import dataclasses
import random
from dataclasses import dataclass
from typing import Any, Callable, Mapping

from tour_resolver.models.enums import ErrorCategory, SourceName

DEFAULT_RETRYABLE_CATEGORIES = frozenset(
    {
        ErrorCategory.NETWORK,
        ErrorCategory.RATE_LIMIT,
        ErrorCategory.SERVICE_UNAVAILABLE,
        ErrorCategory.TIMEOUT,
        ErrorCategory.UNKNOWN,
    }
)


@dataclass(frozen=True)
class RetryPolicy:
    """
    Retry configuration for one source.

    Attributes:
        max_attempts: Total invocations including the first one
        base_delay_ms: Delay after the first failure
        max_delay_ms: Cap applied before jitter
        backoff_multiplier: Growth factor per attempt
        jitter_ratio: Max jitter as a fraction of the capped delay
        retryable_categories: Categories this source retries at all
    """

    max_attempts: int
    base_delay_ms: float
    max_delay_ms: float
    backoff_multiplier: float = 2.0
    jitter_ratio: float = 0.1
    retryable_categories: frozenset[ErrorCategory] = DEFAULT_RETRYABLE_CATEGORIES

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.base_delay_ms < 0 or self.max_delay_ms < 0:
            raise ValueError("delays must be >= 0")
        if self.backoff_multiplier < 1:
            raise ValueError("backoff_multiplier must be >= 1")
        if not 0 <= self.jitter_ratio <= 1:
            raise ValueError("jitter_ratio must be within [0, 1]")
        object.__setattr__(
            self, "retryable_categories", frozenset(self.retryable_categories)
        )

    def base_delay_for(self, attempt: int) -> float:
        """Un-jittered delay after failed attempt ``attempt`` (1-based)."""
        exponent = max(attempt - 1, 0)
        return min(self.base_delay_ms * self.backoff_multiplier**exponent, self.max_delay_ms)

    def delay_for(
        self, attempt: int, random_fn: Callable[[], float] = random.random
    ) -> float:
        """Jittered delay in milliseconds after failed attempt ``attempt``."""
        delay = self.base_delay_for(attempt)
        jitter = delay * self.jitter_ratio * (2 * random_fn() - 1)
        return max(0.0, delay + jitter)

    def allows_retry_for(self, category: ErrorCategory) -> bool:
        return category in self.retryable_categories

    def with_overrides(self, overrides: Mapping[str, Any] | None) -> "RetryPolicy":
        if not overrides:
            return self
        return dataclasses.replace(self, **dict(overrides))


DEFAULT_RETRY_POLICIES: dict[str, RetryPolicy] = {
    SourceName.PLACES.value: RetryPolicy(
        max_attempts=3, base_delay_ms=1000, max_delay_ms=8000, backoff_multiplier=2, jitter_ratio=0.1
    ),
    SourceName.GEOCODING.value: RetryPolicy(
        max_attempts=2, base_delay_ms=500, max_delay_ms=4000, backoff_multiplier=2, jitter_ratio=0.1
    ),
    SourceName.LANGUAGE_MODEL.value: RetryPolicy(
        max_attempts=2, base_delay_ms=2000, max_delay_ms=10000, backoff_multiplier=2, jitter_ratio=0.15
    ),
}

# Used for source types without an entry above
FALLBACK_RETRY_POLICY = RetryPolicy(max_attempts=1, base_delay_ms=0, max_delay_ms=0)


def get_policy(
    source_type: str | SourceName,
    overrides: Mapping[str, Any] | None = None,
    policies: Mapping[str, RetryPolicy] | None = None,
) -> RetryPolicy:
    key = source_type.value if isinstance(source_type, SourceName) else source_type
    table = DEFAULT_RETRY_POLICIES if policies is None else policies
    return table.get(key, FALLBACK_RETRY_POLICY).with_overrides(overrides)
