"""
Unit Tests for Settings

Covers TTL class resolution, grouped views, PostgreSQL aliases and SSL
auto-detection, and the Redis URL builder.
"""

import pytest

from storeops.core.config.constants import TtlClass
from storeops.core.config.settings import (
    CacheTtlSettings,
    PostgresSettings,
    RedisSettings,
    Settings,
    load_settings,
)
from storeops.core.exceptions import ConfigurationError


@pytest.mark.unit
class TestCacheTtlSettings:
    """TTL classes resolve to seconds from configuration."""

    def test_default_ttls(self):
        """Test the deployed TTL for every class."""
        cache = CacheTtlSettings()

        assert cache.ttl_seconds(TtlClass.PURCHASE_ORDER) == 180
        assert cache.ttl_seconds(TtlClass.INDENT) == 180
        assert cache.ttl_seconds(TtlClass.DASHBOARD) == 120
        assert cache.ttl_seconds(TtlClass.GATE_PASS) == 180
        assert cache.ttl_seconds(TtlClass.UOM) == 3600
        assert cache.ttl_seconds(TtlClass.COST_LOCATION) == 1800

    def test_zero_means_no_expiry(self):
        """Test that a TTL of 0 resolves to None."""
        cache = CacheTtlSettings(CACHE_TTL_UOM=0)

        assert cache.ttl_seconds(TtlClass.UOM) is None

    def test_overrides_flow_through_grouped_view(self):
        """Test that flat settings reach the cache view."""
        settings = Settings(_env_file=None, CACHE_TTL_COST_LOCATION=3600, CACHE_SINGLE_FLIGHT=True)

        assert settings.cache.ttl_seconds(TtlClass.COST_LOCATION) == 3600
        assert settings.ttl_seconds(TtlClass.COST_LOCATION) == 3600
        assert settings.cache.CACHE_SINGLE_FLIGHT is True

    def test_single_flight_off_by_default(self):
        assert CacheTtlSettings().CACHE_SINGLE_FLIGHT is False


@pytest.mark.unit
class TestPostgresSettings:
    """PostgreSQL configuration, aliases and SSL."""

    def test_db_aliases_accepted(self, monkeypatch):
        """Test that DB_* variables configure the transactional store."""
        for name in ("PG_HOST", "PG_USER", "PG_PASSWORD", "PG_DATABASE", "PG_NAME"):
            monkeypatch.delenv(name, raising=False)
        monkeypatch.setenv("DB_HOST", "pg.internal")
        monkeypatch.setenv("DB_USER", "repair")
        monkeypatch.setenv("DB_PASSWORD", "pw")
        monkeypatch.setenv("DB_NAME", "repairs")

        settings = Settings(_env_file=None)

        assert settings.PG_HOST == "pg.internal"
        assert settings.PG_DATABASE == "repairs"
        assert settings.postgres.is_configured is True

    def test_pg_name_alias(self, monkeypatch):
        monkeypatch.delenv("PG_DATABASE", raising=False)
        monkeypatch.setenv("PG_NAME", "auth")

        assert Settings(_env_file=None).PG_DATABASE == "auth"

    def test_unconfigured_without_password(self):
        """Test that host and user alone are not enough."""
        postgres = PostgresSettings(PG_HOST="pg", PG_USER="u", PG_PASSWORD=None)

        assert postgres.is_configured is False

    def test_ssl_auto_on_for_rds(self):
        """Test SSL auto-detection for RDS endpoints."""
        postgres = PostgresSettings(PG_HOST="repairs.abc123.ap-south-1.rds.amazonaws.com", PG_SSL=None)

        assert postgres.ssl_enabled is True

    def test_ssl_auto_off_elsewhere(self):
        postgres = PostgresSettings(PG_HOST="localhost", PG_SSL=None)

        assert postgres.ssl_enabled is False

    def test_explicit_ssl_wins(self):
        """Test that PG_SSL overrides auto-detection both ways."""
        assert PostgresSettings(PG_HOST="localhost", PG_SSL=True).ssl_enabled is True
        assert PostgresSettings(PG_HOST="x.rds.amazonaws.com", PG_SSL=False).ssl_enabled is False


@pytest.mark.unit
class TestOracleAndRedisSettings:
    """Oracle credentials and the Redis URL."""

    def test_oracle_requires_all_credentials(self):
        settings = Settings(_env_file=None, ORACLE_USER="u", ORACLE_PASSWORD="p", ORACLE_CONNECTION_STRING=None)

        assert settings.oracle.is_configured is False

    def test_oracle_configured(self, settings):
        assert settings.oracle.is_configured is True

    def test_redis_url_from_parts(self):
        """Test URL assembly from host, port and db."""
        redis_settings = RedisSettings(REDIS_URL=None, REDIS_HOST="cache", REDIS_PORT=6380, REDIS_DB=2)

        assert redis_settings.url == "redis://cache:6380/2"

    def test_redis_url_wins(self):
        redis_settings = RedisSettings(REDIS_URL="redis://:pw@cache:6379/0", REDIS_HOST="ignored")

        assert redis_settings.url == "redis://:pw@cache:6379/0"

    def test_invalid_log_level_rejected(self):
        """Test that an unknown LOG_LEVEL fails validation."""
        with pytest.raises(ValueError):
            Settings(_env_file=None, LOG_LEVEL="LOUD")

    def test_log_level_normalized(self):
        assert Settings(_env_file=None, LOG_LEVEL="debug").LOG_LEVEL == "DEBUG"


@pytest.mark.unit
class TestLoadSettings:
    """Environment parsing failures become ConfigurationError."""

    def test_unparseable_variable(self, monkeypatch):
        monkeypatch.setenv("REDIS_PORT", "not-a-port")

        with pytest.raises(ConfigurationError) as exc_info:
            load_settings()

        assert exc_info.value.code == "CONFIGURATION_ERROR"
        assert "REDIS_PORT" in exc_info.value.details["settings"]
        assert "suggestion" in exc_info.value.details

    def test_valid_environment(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "warning")

        assert load_settings().LOG_LEVEL == "WARNING"
