"""
Retry engine with per-source policies.

Main Components:
    - ErrorClassifier: failure -> ErrorCategory plus retry verdict
    - RetryPolicy: attempts, capped exponential backoff, jitter
    - RetryEngine: runs an operation under a policy
    - RetryResult: outcome of a run (never raised)
    - RetryExhausted: raised by RetryResult.unwrap() on failure
"""

from tour_resolver.retry.classifier import CategorizedError, ErrorClassifier
from tour_resolver.retry.engine import RetryEngine
from tour_resolver.retry.exceptions import RetryExhausted
from tour_resolver.retry.metadata import RetryResult
from tour_resolver.retry.policies import DEFAULT_RETRY_POLICIES, RetryPolicy

__all__ = [
    "CategorizedError",
    "DEFAULT_RETRY_POLICIES",
    "ErrorClassifier",
    "RetryEngine",
    "RetryExhausted",
    "RetryPolicy",
    "RetryResult",
]
