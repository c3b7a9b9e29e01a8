"""
Pytest Configuration and Shared Test Fixtures

This module provides pytest configuration and reusable fixtures for all tests.
All fixtures defined here are automatically available to all test files.
"""

import os
import sys

import fakeredis
import pytest

# Add project root to sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from storeops.core.config.constants import StoreId  # noqa: E402
from tests.test_fixtures.backend_factory import FakeDriver, FakePool  # noqa: E402
from tests.test_fixtures.cache_factory import fakeredis_factory  # noqa: E402
from tests.test_fixtures.settings_factory import make_settings  # noqa: E402

# ============================================================================
# Pytest Configuration
# ============================================================================

# pytest-asyncio runs in auto mode (pyproject.toml); no event_loop fixture here


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def settings():
    """Default test settings."""
    return make_settings()


class FakeClock:
    """Monotonic clock the tests move by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


# ============================================================================
# Cache Fixtures
# ============================================================================


@pytest.fixture
def redis_server():
    """
    In-process Redis server shared by every client a test creates.

    Set ``redis_server.connected = False`` to simulate an outage.
    """
    return fakeredis.FakeServer()


@pytest.fixture
def redis_factory(redis_server):
    return fakeredis_factory(redis_server)


@pytest.fixture
def raw_redis(redis_server):
    """Direct fakeredis client for inspecting stored keys and TTLs."""
    return fakeredis.FakeAsyncRedis(server=redis_server)


# ============================================================================
# Backend Store Fixtures
# ============================================================================


@pytest.fixture
def analytical_pool():
    return FakePool(size=4)


@pytest.fixture
def drivers(analytical_pool):
    """Analytical store configured with ``analytical_pool``; transactional unconfigured."""
    return {
        StoreId.ANALYTICAL: FakeDriver(pool=analytical_pool, acquire_timeout_s=0.2),
        StoreId.TRANSACTIONAL: FakeDriver(configured=False),
    }


# ============================================================================
# Context Fixtures
# ============================================================================


@pytest.fixture
def context(settings, drivers, redis_factory):
    """
    ReportingContext over fake pools and fakeredis.

    Nothing is connected up front; the cache connects on first use.
    """
    from storeops.application.context import build_context

    return build_context(settings, drivers=drivers, redis_factory=redis_factory)
