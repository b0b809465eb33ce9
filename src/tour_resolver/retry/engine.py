"""
Retry engine with per-source policies and capped exponential backoff.

The engine runs an async operation, classifies every failure, and either
waits and tries again or gives up. It never raises for operation failures:
the outcome is always a RetryResult. Cancellation is not a failure and
propagates unchanged.

Usage:
    engine = RetryEngine()
    result = await engine.execute_with_retry(lambda: client.search(q), "places")
    if result.success:
        ...
"""

import asyncio
import random
import time
from typing import Any, Awaitable, Callable, Mapping, Optional

import structlog

from tour_resolver.models.enums import SourceName
from tour_resolver.monitoring.metrics import retries_total
from tour_resolver.retry.classifier import CategorizedError, ErrorClassifier
from tour_resolver.retry.metadata import RetryResult
from tour_resolver.retry.policies import RetryPolicy, get_policy

logger = structlog.get_logger(__name__)

Operation = Callable[[], Awaitable[Any]]


class RetryEngine:
    """
    Run operations under the retry policy of their source.

    Attributes:
        classifier: Error classifier used on every failure
        policies: Optional replacement for the default policy table
    """

    def __init__(
        self,
        classifier: Optional[ErrorClassifier] = None,
        policies: Optional[Mapping[str, RetryPolicy]] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        random_fn: Callable[[], float] = random.random,
    ):
        """
        Initialize retry engine.

        Args:
            classifier: Error classifier (default ErrorClassifier())
            policies: Policy table keyed by source name
            sleep: Awaitable sleep taking seconds
            random_fn: Uniform [0, 1) source for jitter
        """
        self.classifier = classifier or ErrorClassifier()
        self.policies = policies
        self._sleep = sleep
        self._random = random_fn

    def policy_for(
        self, source_type: str | SourceName, policy_override: Mapping[str, Any] | None = None
    ) -> RetryPolicy:
        return get_policy(source_type, policy_override, self.policies)

    def should_retry(self, categorized: CategorizedError, policy: RetryPolicy) -> bool:
        return categorized.is_retryable and policy.allows_retry_for(categorized.category)

    async def execute_with_retry(
        self,
        operation: Operation,
        source_type: str | SourceName,
        policy_override: Mapping[str, Any] | None = None,
        stop_when: Optional[Callable[[], bool]] = None,
    ) -> RetryResult:
        """
        Execute ``operation`` with retries.

        Args:
            operation: Zero-argument coroutine factory, invoked once per attempt
            source_type: Policy key (places, geocoding, language_model)
            policy_override: Field overrides merged onto the source policy
            stop_when: Checked before every retry; True ends the run with the
                last failure (used when the source has been switched off)

        Returns:
            RetryResult describing success or the final categorized failure
        """
        source = source_type.value if isinstance(source_type, SourceName) else source_type
        policy = self.policy_for(source, policy_override)
        started = time.perf_counter()
        delays: list[float] = []
        attempt = 0

        while True:
            attempt += 1
            try:
                data = await operation()
            except Exception as exc:
                categorized = self.classifier.classify(exc)
                if attempt > 1:
                    retries_total.labels(source=source, success="false").inc()

                retry = self.should_retry(categorized, policy) and attempt < policy.max_attempts
                stopped = retry and stop_when is not None and stop_when()
                if stopped:
                    retry = False
                logger.warning(
                    "Source operation failed",
                    source=source,
                    attempt=attempt,
                    max_attempts=policy.max_attempts,
                    will_retry=retry,
                    stopped=stopped,
                    suggested_action=categorized.suggested_action,
                    **categorized.log_context(),
                )
                if not retry:
                    return RetryResult(
                        source_type=source,
                        success=False,
                        attempts=attempt,
                        total_time_ms=self._elapsed_ms(started),
                        error=exc,
                        categorized_error=categorized,
                        delays_ms=delays,
                    )

                delay_ms = policy.delay_for(attempt, self._random)
                delays.append(delay_ms)
                logger.debug("Backing off before retry", source=source, delay_ms=round(delay_ms, 1))
                await self._sleep(delay_ms / 1000.0)
                continue

            if attempt > 1:
                retries_total.labels(source=source, success="true").inc()
                logger.info("Source operation succeeded after retry", source=source, attempts=attempt)
            return RetryResult(
                source_type=source,
                success=True,
                attempts=attempt,
                total_time_ms=self._elapsed_ms(started),
                data=data,
                delays_ms=delays,
            )

    @staticmethod
    def _elapsed_ms(started: float) -> float:
        return (time.perf_counter() - started) * 1000
