"""
Retry result tracking.

RetryResult is what the retry engine returns instead of raising: callers
branch on ``success`` and read the categorized error when it is False.
"""

from dataclasses import dataclass, field
from typing import Any, Generic, Optional, TypeVar

from tour_resolver.retry.classifier import CategorizedError
from tour_resolver.retry.exceptions import RetryExhausted

T = TypeVar("T")


@dataclass(frozen=True)
class RetryResult(Generic[T]):
    """
    Outcome of running an operation under a retry policy.

    Attributes:
        source_type: Policy key the operation ran under
        success: True when some attempt returned normally
        data: Return value of the successful attempt
        error: Last exception raised (failure only)
        categorized_error: Classification of ``error`` (failure only)
        attempts: Number of times the operation was invoked; 0 when the
            source was unavailable and no call went out
        total_time_ms: Wall time including backoff waits
        delays_ms: Backoff delays actually waited, in order
    """

    source_type: str
    success: bool
    attempts: int
    total_time_ms: float
    data: Optional[T] = None
    error: Optional[BaseException] = None
    categorized_error: Optional[CategorizedError] = None
    delays_ms: list[float] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Validate result invariants."""
        if self.attempts < 0:
            raise ValueError("attempts must be >= 0")
        if self.success and self.attempts < 1:
            raise ValueError("a successful result needs at least one attempt")
        if self.total_time_ms < 0:
            raise ValueError("total_time_ms must be >= 0")
        if self.success and self.error is not None:
            raise ValueError("a successful result cannot carry an error")
        if not self.success and self.categorized_error is None:
            raise ValueError("a failed result must carry a categorized error")

    @property
    def retries(self) -> int:
        return max(0, self.attempts - 1)

    @property
    def attempted(self) -> bool:
        return self.attempts > 0

    def unwrap(self) -> Any:
        """Return the data, or raise RetryExhausted for a failed result."""
        if self.success:
            return self.data
        raise RetryExhausted(self)
