"""
Per-source circuit breakers built on pybreaker.

Source calls are async and run outside the breaker, so outcomes are fed in
afterwards through record_success() / record_failure(). pybreaker keeps the
failure counter and the CLOSED / OPEN / HALF_OPEN state machine; this module
adds an injectable clock for the reset timeout, the Prometheus gauge and the
per-source configuration.

Authentication and quota failures call force_open(): the source is taken
out of the cascade for one reset period instead of being retried.
"""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

import pybreaker
import structlog

from tour_resolver.models.enums import SourceName
from tour_resolver.monitoring.metrics import circuit_breaker_state

logger = structlog.get_logger(__name__)


class CircuitState(str, Enum):
    CLOSED = "CLOSED"
    OPEN = "OPEN"
    HALF_OPEN = "HALF_OPEN"


_FROM_PYBREAKER = {
    pybreaker.STATE_CLOSED: CircuitState.CLOSED,
    pybreaker.STATE_OPEN: CircuitState.OPEN,
    pybreaker.STATE_HALF_OPEN: CircuitState.HALF_OPEN,
}

_STATE_GAUGE = {CircuitState.CLOSED: 0.0, CircuitState.HALF_OPEN: 0.5, CircuitState.OPEN: 1.0}


@dataclass(frozen=True)
class CircuitBreakerConfig:
    failure_threshold: int
    reset_timeout_s: float
    # successes needed in HALF_OPEN before closing again
    half_open_max_calls: int


DEFAULT_BREAKER_CONFIGS: dict[str, CircuitBreakerConfig] = {
    SourceName.PLACES.value: CircuitBreakerConfig(5, 60.0, 3),
    SourceName.GEOCODING.value: CircuitBreakerConfig(3, 30.0, 2),
    SourceName.LANGUAGE_MODEL.value: CircuitBreakerConfig(3, 120.0, 2),
}


class _SourceCallFailed(Exception):
    """Marker fed to pybreaker to count one failed source call."""


def _succeed() -> None:
    return None


def _fail() -> None:
    raise _SourceCallFailed()


class _StateListener(pybreaker.CircuitBreakerListener):
    def __init__(self, owner: "CircuitBreaker"):
        self.owner = owner

    def state_change(self, cb, old_state, new_state) -> None:
        self.owner._on_state_change(
            old_state.name if old_state is not None else None,
            new_state.name,
        )


class CircuitBreaker:
    """Circuit breaker for one source."""

    def __init__(
        self,
        source: str,
        config: CircuitBreakerConfig,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.source = source
        self.config = config
        self._clock = clock
        self.opened_at: Optional[float] = None
        self.total_calls = 0
        self.failed_calls = 0
        self._breaker = pybreaker.CircuitBreaker(
            fail_max=config.failure_threshold,
            reset_timeout=config.reset_timeout_s,
            success_threshold=config.half_open_max_calls,
            listeners=[_StateListener(self)],
            name=source,
        )
        circuit_breaker_state.labels(source=source).set(_STATE_GAUGE[CircuitState.CLOSED])

    @property
    def state(self) -> CircuitState:
        return _FROM_PYBREAKER[self._breaker.current_state]

    @property
    def consecutive_failures(self) -> int:
        return self._breaker.fail_counter

    def _on_state_change(self, old: Optional[str], new: str) -> None:
        state = _FROM_PYBREAKER[new]
        if state is CircuitState.OPEN:
            self.opened_at = self._clock()
        circuit_breaker_state.labels(source=self.source).set(_STATE_GAUGE[state])
        log = logger.warning if state is CircuitState.OPEN else logger.info
        log(
            "Circuit breaker state change",
            source=self.source,
            from_state=_FROM_PYBREAKER[old].value if old in _FROM_PYBREAKER else None,
            to_state=state.value,
        )

    def allow_request(self) -> bool:
        """True when a call to this source may go out now."""
        if self.state is not CircuitState.OPEN:
            return True
        if self._clock() - (self.opened_at or 0.0) < self.config.reset_timeout_s:
            return False
        self._breaker.half_open()
        return True

    def _feed(self, outcome: Callable[[], None]) -> None:
        try:
            self._breaker.call(outcome)
        except (_SourceCallFailed, pybreaker.CircuitBreakerError):
            pass

    def record_success(self) -> None:
        self.total_calls += 1
        self._feed(_succeed)

    def record_failure(self) -> None:
        self.total_calls += 1
        self.failed_calls += 1
        self._feed(_fail)

    def force_open(self, reason: str = "non-retryable failure") -> None:
        logger.warning("Forcing circuit breaker open", source=self.source, reason=reason)
        self._breaker.open()
        # re-opening an open breaker restarts the reset period
        self.opened_at = self._clock()

    def reset(self) -> None:
        self._breaker.close()
        self.opened_at = None
        self.total_calls = 0
        self.failed_calls = 0

    def metrics(self) -> dict:
        return {
            "state": self.state.value,
            "total_calls": self.total_calls,
            "failed_calls": self.failed_calls,
            "failure_rate": self.failed_calls / self.total_calls if self.total_calls else 0.0,
            "consecutive_failures": self.consecutive_failures,
        }


class CircuitBreakerRegistry:
    """Lazily created breakers, one per source."""

    def __init__(
        self,
        configs: Optional[dict[str, CircuitBreakerConfig]] = None,
        clock: Callable[[], float] = time.monotonic,
        enabled: bool = True,
    ):
        self.configs = configs or DEFAULT_BREAKER_CONFIGS
        self.enabled = enabled
        self._clock = clock
        self._breakers: dict[str, CircuitBreaker] = {}

    def get(self, source: str | SourceName) -> CircuitBreaker:
        key = source.value if isinstance(source, SourceName) else source
        if key not in self._breakers:
            config = self.configs.get(key) or DEFAULT_BREAKER_CONFIGS[SourceName.PLACES.value]
            self._breakers[key] = CircuitBreaker(key, config, self._clock)
        return self._breakers[key]

    def allow_request(self, source: str | SourceName) -> bool:
        if not self.enabled:
            return True
        return self.get(source).allow_request()

    def all_metrics(self) -> dict[str, dict]:
        return {source: breaker.metrics() for source, breaker in self._breakers.items()}

    def reset_all(self) -> None:
        for breaker in self._breakers.values():
            breaker.reset()
