"""
Unit Tests for RedisClient

Runs against fakeredis. An outage is simulated by disconnecting the fake
server; the reconnect cooldown is driven by a hand-moved clock.
"""

import asyncio
from unittest.mock import MagicMock

import pytest

from storeops.infrastructure.cache import redis_client as redis_client_module
from storeops.infrastructure.cache.redis_client import RedisClient
from tests.test_fixtures.settings_factory import make_settings


@pytest.fixture
def client(settings, redis_factory, clock):
    return RedisClient(settings.redis, factory=redis_factory, clock=clock)


@pytest.mark.unit
class TestRedisOperations:
    """GET / SET / DEL against a live server."""

    @pytest.mark.asyncio
    async def test_connect_marks_live(self, client):
        assert client.is_live() is False

        assert await client.connect() is True
        assert client.is_live() is True
        assert client.connect_cycles == 1

    @pytest.mark.asyncio
    async def test_set_then_get(self, client):
        """Test that bytes round-trip unchanged."""
        assert await client.set("uom:items", b'{"rows":[],"total":0}', ttl=60) is True

        assert await client.get("uom:items") == b'{"rows":[],"total":0}'

    @pytest.mark.asyncio
    async def test_get_missing_key(self, client):
        assert await client.get("po:pending") is None

    @pytest.mark.asyncio
    async def test_whole_second_ttl_sent_as_ex(self, client, raw_redis):
        await client.set("indent:pending", b"[]", ttl=180)

        ttl = await raw_redis.ttl("indent:pending")
        assert 170 <= ttl <= 180

    @pytest.mark.asyncio
    async def test_fractional_ttl_expires(self, client):
        """Test that a sub-second TTL (PX) actually expires the key."""
        await client.set("k", b"1", ttl=0.05)
        assert await client.get("k") == b"1"

        await asyncio.sleep(0.15)

        assert await client.get("k") is None

    @pytest.mark.asyncio
    async def test_no_ttl_persists(self, client, raw_redis):
        await client.set("k", b"1")

        assert await raw_redis.ttl("k") == -1

    @pytest.mark.asyncio
    async def test_delete_single_key(self, client):
        await client.set("uom:items", b"[]")

        assert await client.delete("uom:items") == 1
        assert await client.delete("uom:items") == 0

    @pytest.mark.asyncio
    async def test_pattern_delete_only_matches_domain(self, client):
        """Test scan-then-delete removes exactly the matching keys."""
        await client.set("po:pending", b"1")
        await client.set("po:history", b"2")
        await client.set("uom:items", b"3")

        removed = await client.delete("po:*")

        assert removed == 2
        assert await client.get("po:pending") is None
        assert await client.get("po:history") is None
        assert await client.get("uom:items") == b"3"

    @pytest.mark.asyncio
    async def test_pattern_delete_without_matches(self, client):
        assert await client.delete("gatepass:*") == 0

    @pytest.mark.asyncio
    async def test_health_check_live(self, client):
        health = await client.health_check()

        assert health["status"] == "healthy"
        assert health["live"] is True
        assert health["ping_latency_ms"] is not None

    @pytest.mark.asyncio
    async def test_disconnect(self, client):
        await client.connect()

        await client.disconnect()

        assert client.is_live() is False


@pytest.mark.unit
class TestRedisDegradation:
    """Transport failures become failure results; nothing raises."""

    @pytest.mark.asyncio
    async def test_connect_failure_is_not_fatal(self, client, redis_server):
        redis_server.connected = False

        assert await client.connect() is False
        assert client.is_live() is False

    @pytest.mark.asyncio
    async def test_operations_degrade_when_down(self, client, redis_server):
        """Test get → None, set → False, delete → 0 during an outage."""
        redis_server.connected = False

        assert await client.get("po:pending") is None
        assert await client.set("po:pending", b"[]", ttl=60) is False
        assert await client.delete("po:*") == 0

    @pytest.mark.asyncio
    async def test_mid_session_outage(self, client, redis_server):
        """Test that a live connection losing the server flips liveness."""
        await client.set("k", b"1")
        assert client.is_live() is True

        redis_server.connected = False

        assert await client.get("k") is None
        assert client.is_live() is False

    @pytest.mark.asyncio
    async def test_health_check_when_down(self, client, redis_server):
        redis_server.connected = False

        health = await client.health_check()

        assert health["status"] == "unavailable"
        assert health["live"] is False

    @pytest.mark.asyncio
    async def test_malformed_url_is_a_connect_failure(self, clock):
        """Test that a URL the client cannot be built from degrades instead of raising."""
        client = RedisClient(make_settings(REDIS_URL="localhost:6379").redis, clock=clock)

        assert await client.connect() is False
        assert await client.get("po:pending") is None
        assert await client.set("po:pending", b"[]", ttl=60) is False
        assert await client.delete("po:*") == 0
        assert client.is_live() is False
        assert client.connect_cycles == 1

    @pytest.mark.asyncio
    async def test_rejected_command_keeps_cache_live(self, client, raw_redis):
        """Test that a command error fails the call without marking the cache down."""
        await raw_redis.rpush("po:pending", b"not-a-string")

        assert await client.get("po:pending") is None
        assert client.is_live() is True
        assert await client.set("uom:items", b"[]") is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize("ttl", [0, -5])
    async def test_non_positive_ttl_means_no_expiry(self, client, raw_redis, ttl):
        assert await client.set("k", b"1", ttl=ttl) is True

        assert await raw_redis.ttl("k") == -1
        assert client.is_live() is True


@pytest.mark.unit
class TestReconnectPolicy:
    """Bounded connect cycles, cooldown and log suppression."""

    @pytest.mark.asyncio
    async def test_cooldown_suppresses_reconnects(self, client, redis_server, clock):
        """Test that a failed cycle silences reconnect attempts until the cooldown ends."""
        redis_server.connected = False

        assert await client.connect() is False
        assert client.connect_cycles == 1

        for _ in range(5):
            assert await client.get("k") is None
        assert client.connect_cycles == 1

        clock.advance(29.0)
        assert await client.get("k") is None
        assert client.connect_cycles == 1

    @pytest.mark.asyncio
    async def test_recovers_after_cooldown(self, client, redis_server, clock):
        redis_server.connected = False
        await client.connect()

        redis_server.connected = True
        assert await client.get("k") is None
        assert client.is_live() is False

        clock.advance(31.0)

        assert await client.set("k", b"1") is True
        assert client.is_live() is True
        assert client.connect_cycles == 2

    @pytest.mark.asyncio
    async def test_failure_logged_once_per_streak(self, client, redis_server, monkeypatch):
        """Test that a streak of failures produces one warning."""
        fake_logger = MagicMock()
        monkeypatch.setattr(redis_client_module, "logger", fake_logger)

        await client.connect()
        redis_server.connected = False

        for _ in range(4):
            await client.get("k")
            await client.set("k", b"1")

        assert fake_logger.warning.call_count == 1

    @pytest.mark.asyncio
    async def test_new_streak_logs_again(self, client, redis_server, clock, monkeypatch):
        fake_logger = MagicMock()
        monkeypatch.setattr(redis_client_module, "logger", fake_logger)

        await client.connect()
        redis_server.connected = False
        await client.get("k")

        redis_server.connected = True
        clock.advance(31.0)
        await client.get("k")
        fake_logger.info.assert_any_call("Redis recovered", stage="REDIS.2_OPERATION")

        redis_server.connected = False
        await client.get("k")

        assert fake_logger.warning.call_count == 2
