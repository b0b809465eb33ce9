"""Unit test fixtures (mocks and stubs).

Provides mock objects for testing without external dependencies.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from tour_resolver.degradation.cache import TTLCache
from tour_resolver.degradation.circuit_breaker import CircuitBreakerRegistry
from tour_resolver.degradation.controller import DegradationController
from tour_resolver.degradation.health_store import InMemoryHealthStore
from tour_resolver.retry.engine import RetryEngine
from tour_resolver.sources.gemini_client import GeminiClient
from tour_resolver.sources.geocoding_client import GeocodingClient
from tour_resolver.sources.places_client import PlacesClient
from tour_resolver.sources.prompt_builder import PromptBuilder


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def mock_async_redis():
    """Mock AsyncRedis client for unit tests (async)."""
    mock = AsyncMock()
    mock.get = AsyncMock(return_value=None)
    mock.setex = AsyncMock(return_value=True)
    mock.delete = AsyncMock(return_value=1)
    mock.zadd = AsyncMock(return_value=1)
    mock.zrem = AsyncMock(return_value=1)
    mock.zremrangebyscore = AsyncMock(return_value=0)
    mock.zrevrange = AsyncMock(return_value=[])
    mock.hgetall = AsyncMock(return_value={})
    mock.hset = AsyncMock(return_value=1)
    mock.sadd = AsyncMock(return_value=1)
    mock.smembers = AsyncMock(return_value=set())
    return mock


@pytest.fixture
def no_sleep() -> AsyncMock:
    """Replacement for asyncio.sleep that returns immediately."""
    return AsyncMock(return_value=None)


@pytest.fixture
def retry_engine(no_sleep) -> RetryEngine:
    """Retry engine without waits and without jitter (random 0.5 -> zero jitter)."""
    return RetryEngine(sleep=no_sleep, random_fn=lambda: 0.5)


@pytest.fixture
def health_store() -> InMemoryHealthStore:
    return InMemoryHealthStore()


@pytest.fixture
def controller(health_store) -> DegradationController:
    return DegradationController(health_store=health_store, cache=TTLCache())


@pytest.fixture
def breakers(fake_clock) -> CircuitBreakerRegistry:
    return CircuitBreakerRegistry(clock=fake_clock)


@pytest.fixture
def mock_places_client():
    """PlacesClient double; search_text returns no matches unless configured."""
    mock = MagicMock(spec=PlacesClient)
    mock.search_text = AsyncMock(return_value=[])
    return mock


@pytest.fixture
def mock_geocoding_client():
    """GeocodingClient double; geocode returns None unless configured."""
    mock = MagicMock(spec=GeocodingClient)
    mock.geocode = AsyncMock(return_value=None)
    return mock


@pytest.fixture
def mock_gemini_client():
    """GeminiClient double; generate returns unparseable text unless configured."""
    mock = MagicMock(spec=GeminiClient)
    mock.generate = AsyncMock(return_value="I don't know")
    return mock


@pytest.fixture
def prompt_builder() -> PromptBuilder:
    """Real PromptBuilder over the packaged templates."""
    return PromptBuilder(suggestion_count=5)
