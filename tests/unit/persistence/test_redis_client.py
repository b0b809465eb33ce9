"""
Unit tests for Redis client and connection pooling.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from tour_resolver.config import Settings
from tour_resolver.persistence.redis_client import RedisClient, ping


@pytest.fixture
def mock_settings():
    """Mock settings for testing."""
    settings = MagicMock(spec=Settings)
    settings.REDIS_URL = "redis://localhost:6379/0"
    settings.REDIS_MAX_CONNECTIONS = 50
    return settings


@pytest.fixture(autouse=True)
def reset_pools():
    """Reset connection pools before each test."""
    RedisClient._sync_pool = None
    RedisClient._async_pool = None
    yield
    RedisClient._sync_pool = None
    RedisClient._async_pool = None


def test_get_async_client_creates_pool_once(mock_settings):
    with patch("tour_resolver.persistence.redis_client.AsyncConnectionPool") as mock_pool:
        mock_pool.from_url.return_value = MagicMock()

        RedisClient.get_async_client(mock_settings)
        RedisClient.get_async_client(mock_settings)

        mock_pool.from_url.assert_called_once_with(
            mock_settings.REDIS_URL,
            max_connections=mock_settings.REDIS_MAX_CONNECTIONS,
            decode_responses=True,
            socket_timeout=5,
            socket_connect_timeout=5,
            retry_on_timeout=True,
        )


def test_get_sync_client_creates_pool_once(mock_settings):
    with patch("tour_resolver.persistence.redis_client.ConnectionPool") as mock_pool:
        mock_pool.from_url.return_value = MagicMock()

        RedisClient.get_sync_client(mock_settings)
        RedisClient.get_sync_client(mock_settings)

        mock_pool.from_url.assert_called_once()


@pytest.mark.asyncio
async def test_close_async_pool():
    mock_pool = MagicMock()
    mock_pool.disconnect = AsyncMock()
    RedisClient._async_pool = mock_pool

    await RedisClient.close_async_pool()

    mock_pool.disconnect.assert_awaited_once()
    assert RedisClient._async_pool is None


def test_close_sync_pool():
    mock_pool = MagicMock()
    RedisClient._sync_pool = mock_pool

    RedisClient.close_sync_pool()

    mock_pool.disconnect.assert_called_once()
    assert RedisClient._sync_pool is None


def test_ping_reports_failure(mock_settings):
    with patch.object(RedisClient, "get_sync_client") as get_client:
        get_client.return_value.ping.side_effect = ConnectionError("refused")

        assert ping(mock_settings) is False


def test_ping_success(mock_settings):
    with patch.object(RedisClient, "get_sync_client") as get_client:
        get_client.return_value.ping.return_value = True

        assert ping(mock_settings) is True
