"""Integration test fixtures (service checks and prerequisites).

Integration tests talk to the live Google APIs and a local Redis. They are
skipped when the API keys are not set or Redis is not reachable.
"""

import os

import pytest
from redis import Redis

REDIS_TEST_URL = "redis://localhost:6379/15"


@pytest.fixture(scope="session")
def maps_api_key() -> str:
    """GOOGLE_MAPS_API_KEY from the environment, or skip."""
    key = os.environ.get("GOOGLE_MAPS_API_KEY", "")
    if not key:
        pytest.skip("GOOGLE_MAPS_API_KEY not set")
    return key


@pytest.fixture(scope="session")
def ai_api_key() -> str:
    """GOOGLE_AI_API_KEY from the environment, or skip."""
    key = os.environ.get("GOOGLE_AI_API_KEY", "")
    if not key:
        pytest.skip("GOOGLE_AI_API_KEY not set")
    return key


@pytest.fixture(scope="session")
def check_redis():
    """Check if Redis is available at localhost:6379.

    Skips tests if Redis is not reachable.
    """
    try:
        client = Redis.from_url(REDIS_TEST_URL)
        client.ping()
        client.close()
    except Exception as e:
        pytest.skip(f"Redis not available: {e}")


@pytest.fixture
def clean_redis(check_redis):
    """Empty test database (db 15) before and after the test."""
    client = Redis.from_url(REDIS_TEST_URL)
    client.flushdb()
    yield REDIS_TEST_URL
    client.flushdb()
    client.close()


@pytest.fixture
def integration_settings(test_settings):
    """Settings for integration tests with real services."""
    test_settings.GOOGLE_MAPS_API_KEY = os.environ.get("GOOGLE_MAPS_API_KEY", "")
    test_settings.GOOGLE_AI_API_KEY = os.environ.get("GOOGLE_AI_API_KEY", "")
    test_settings.REDIS_URL = REDIS_TEST_URL
    test_settings.HTTP_TIMEOUT = 30
    return test_settings
