"""
Graceful degradation: source health, levels, circuit breakers and cache.
"""

from tour_resolver.degradation.cache import TTLCache
from tour_resolver.degradation.circuit_breaker import CircuitBreaker, CircuitBreakerRegistry, CircuitState
from tour_resolver.degradation.controller import DegradationController
from tour_resolver.degradation.health_store import HealthStore, InMemoryHealthStore, RedisHealthStore
from tour_resolver.degradation.levels import DEGRADATION_LEVELS, DegradationPolicy

__all__ = [
    "CircuitBreaker",
    "CircuitBreakerRegistry",
    "CircuitState",
    "DEGRADATION_LEVELS",
    "DegradationController",
    "DegradationPolicy",
    "HealthStore",
    "InMemoryHealthStore",
    "RedisHealthStore",
    "TTLCache",
]
