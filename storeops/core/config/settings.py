#!/usr/bin/env python3
"""
Centralized Configuration Module using Pydantic Settings

This module provides type-safe, environment-based configuration for the
reporting backend. Configuration is loaded once at startup; nothing in the
data-access layer reads the environment directly.

Architectural Decision: Pydantic Settings for type safety and validation
- Environment variable loading with .env support
- Type validation at startup (fail fast on misconfiguration)
- Grouped views (oracle, postgres, redis, cache, pool, ...) over flat env vars
- Easy testing with reload_settings() / explicit Settings(...) construction
"""

from typing import Literal

from pydantic import AliasChoices, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from storeops.core.config.constants import TtlClass
from storeops.core.exceptions import ConfigurationError


class OracleSettings(BaseSettings):
    """
    Analytical store (Oracle) configuration.

    STAGE-POOL.0: Oracle pool and client configuration

    Pool sizing mirrors the production deployment: 2..20 sessions, grown two
    at a time, 60s queue timeout, 50 cached statements per session.
    """

    ORACLE_USER: str | None = Field(default=None, description="Oracle user")
    ORACLE_PASSWORD: str | None = Field(default=None, description="Oracle password")
    ORACLE_CONNECTION_STRING: str | None = Field(default=None, description="Oracle DSN / connect string")

    ORACLE_POOL_MIN: int = Field(default=2, description="Minimum pooled sessions")
    ORACLE_POOL_MAX: int = Field(default=20, description="Maximum pooled sessions")
    ORACLE_POOL_INCREMENT: int = Field(default=2, description="Sessions opened per pool growth step")
    ORACLE_POOL_IDLE_TIMEOUT: int = Field(default=60, description="Idle session timeout in seconds")
    ORACLE_ACQUIRE_TIMEOUT: float = Field(default=60.0, description="Acquisition timeout in seconds")
    ORACLE_STMT_CACHE_SIZE: int = Field(default=50, description="Statement cache size per session")
    ORACLE_FETCH_ARRAY_SIZE: int = Field(default=1000, description="Cursor arraysize")
    ORACLE_PREFETCH_ROWS: int = Field(default=1000, description="Cursor prefetchrows")

    ORACLE_THICK_MODE: bool = Field(default=True, description="Load Oracle Instant Client (thick mode)")
    ORACLE_WIN_CLIENT_LIB_DIR: str = Field(
        default="C:\\oracle\\instantclient_23_9",
        description="Instant Client directory on Windows",
    )
    ORACLE_LINUX_CLIENT_LIB_DIR: str = Field(
        default="/home/ubuntu/oracle_client/instantclient_23_26",
        description="Instant Client directory on Linux / macOS",
    )

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)

    @property
    def is_configured(self) -> bool:
        """All three credentials are required to open a pool."""
        return bool(self.ORACLE_USER and self.ORACLE_PASSWORD and self.ORACLE_CONNECTION_STRING)


class PostgresSettings(BaseSettings):
    """
    Transactional store (PostgreSQL) configuration.

    STAGE-POOL.0: PostgreSQL pool configuration

    SSL defaults to on for RDS hosts and off elsewhere unless PG_SSL is set.
    """

    PG_HOST: str | None = Field(default=None, description="PostgreSQL host")
    PG_PORT: int = Field(default=5432, description="PostgreSQL port")
    PG_USER: str | None = Field(default=None, description="PostgreSQL user")
    PG_PASSWORD: str | None = Field(default=None, description="PostgreSQL password")
    PG_DATABASE: str | None = Field(default=None, description="PostgreSQL database name")
    PG_SSL: bool | None = Field(default=None, description="Force SSL on/off (auto when unset)")

    PG_POOL_MIN: int = Field(default=1, description="Minimum pooled connections")
    PG_POOL_MAX: int = Field(default=10, description="Maximum pooled connections")
    PG_IDLE_TIMEOUT: float = Field(default=30.0, description="Idle connection lifetime in seconds")
    PG_CONNECT_TIMEOUT: float = Field(default=5.0, description="Connect / acquisition timeout in seconds")
    PG_STATEMENT_CACHE_SIZE: int = Field(default=100, description="Prepared statement cache size")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)

    @property
    def is_configured(self) -> bool:
        """Host, user and password are required to open a pool."""
        return bool(self.PG_HOST and self.PG_USER and self.PG_PASSWORD)

    @property
    def ssl_enabled(self) -> bool:
        """Explicit PG_SSL wins; otherwise SSL is on for RDS endpoints."""
        if self.PG_SSL is not None:
            return self.PG_SSL
        return bool(self.PG_HOST and ".rds.amazonaws.com" in self.PG_HOST)


class RedisSettings(BaseSettings):
    """
    Redis configuration for the read-through cache.

    STAGE-REDIS.0: Redis connection configuration

    Reconnect policy: 3 attempts, 100ms doubling up to 1s, then silence
    for REDIS_RECONNECT_COOLDOWN seconds.
    """

    REDIS_URL: str | None = Field(default=None, description="Full Redis URL (overrides host/port/db)")
    REDIS_HOST: str = Field(default="127.0.0.1", description="Redis server host")
    REDIS_PORT: int = Field(default=6379, description="Redis server port")
    REDIS_DB: int = Field(default=0, description="Redis database number")
    REDIS_PASSWORD: str | None = Field(default=None, description="Redis password (if required)")

    REDIS_CONNECT_TIMEOUT: float = Field(default=5.0, description="Connect timeout in seconds")
    REDIS_SOCKET_TIMEOUT: float = Field(default=5.0, description="Operation timeout in seconds")
    REDIS_CONNECT_ATTEMPTS: int = Field(default=3, description="Connect attempts per reconnect cycle")
    REDIS_BACKOFF_INITIAL: float = Field(default=0.1, description="First backoff delay in seconds")
    REDIS_BACKOFF_MAX: float = Field(default=1.0, description="Backoff delay cap in seconds")
    REDIS_RECONNECT_COOLDOWN: float = Field(
        default=30.0, description="Seconds to stay silent after a failed reconnect cycle"
    )

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)

    @property
    def url(self) -> str:
        """Connection URL; REDIS_URL wins over host/port/db."""
        if self.REDIS_URL:
            return self.REDIS_URL
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"


class CacheTtlSettings(BaseSettings):
    """
    TTL (seconds) per TTL class. 0 means "no expiry".

    STAGE-CACHE.0: Cache TTL configuration

    Reference data (UOM, cost locations) is deliberately configurable: the
    30 vs 60 minute split has no business rule behind it.
    """

    CACHE_TTL_PURCHASE_ORDER: int = Field(default=180, description="Purchase order lists (3 min)")
    CACHE_TTL_INDENT: int = Field(default=180, description="Store indent lists (3 min)")
    CACHE_TTL_DASHBOARD: int = Field(default=120, description="Indent dashboard (2 min)")
    CACHE_TTL_GATE_PASS: int = Field(default=180, description="Repair gate passes (3 min)")
    CACHE_TTL_UOM: int = Field(default=3600, description="UOM items (1 hour)")
    CACHE_TTL_COST_LOCATION: int = Field(default=1800, description="Cost locations (30 min)")

    ENABLE_CACHING: bool = Field(default=True, description="Serve reads through the cache")
    CACHE_SINGLE_FLIGHT: bool = Field(
        default=False, description="Share one compute between concurrent misses of the same key"
    )

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)

    def ttl_seconds(self, ttl_class: TtlClass) -> int | None:
        """Resolve a TTL class to seconds (None = no expiry)."""
        value = getattr(self, f"CACHE_TTL_{ttl_class.name}")
        return value if value > 0 else None


class PoolSettings(BaseSettings):
    """Cross-store pool behaviour."""

    POOL_ACQUIRE_WARN_MS: float = Field(default=100.0, description="Slow acquisition warning threshold (ms)")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class ReportingSettings(BaseSettings):
    """
    Filters shared by every reporting query (bound as SQL parameters).
    """

    REPORT_ENTITY_CODE: str = Field(default="SR", description="ERP entity code")
    REPORT_FROM_DATE: str = Field(default="2025-04-01", description="Financial year start (YYYY-MM-DD)")
    REPORT_PO_SERIES: str = Field(default="U3", description="Purchase order series")
    DEFAULT_DIVISION: str = Field(default="SM", description="Division used when none is given")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class LoggingSettings(BaseSettings):
    """
    Logging configuration for structured logging.

    STAGE-L: Logging configuration
    """

    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: Literal["json", "console"] = Field(default="json", description="Log output format")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v.upper()

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class ApplicationSettings(BaseSettings):
    """
    General application settings.

    STAGE-APP.0: Application initialization
    """

    ENVIRONMENT: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment"
    )
    APP_NAME: str = Field(default="Store Operations Reporting API", description="Application name")
    APP_VERSION: str = Field(default="1.0.0", description="Application version")
    API_HOST: str = Field(default="0.0.0.0", description="API host")
    API_PORT: int = Field(default=3004, description="API port")
    CORS_ORIGINS: list[str] = Field(default=["*"], description="Allowed CORS origins")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class Settings(BaseSettings):
    """
    Main settings class that aggregates all configuration sections.

    STAGE-APP.0: Centralized configuration initialization

    Usage:
        from storeops.core.config.settings import get_settings

        settings = get_settings()
        max_sessions = settings.oracle.ORACLE_POOL_MAX
        ttl = settings.cache.ttl_seconds(TtlClass.UOM)

    Environment variables are flat; the grouped properties below build typed
    views so each component only sees its own section.
    """

    # Oracle (analytical store)
    ORACLE_USER: str | None = Field(default=None, description="Oracle user")
    ORACLE_PASSWORD: str | None = Field(default=None, description="Oracle password")
    ORACLE_CONNECTION_STRING: str | None = Field(default=None, description="Oracle DSN / connect string")
    ORACLE_POOL_MIN: int = Field(default=2, description="Minimum pooled sessions")
    ORACLE_POOL_MAX: int = Field(default=20, description="Maximum pooled sessions")
    ORACLE_POOL_INCREMENT: int = Field(default=2, description="Sessions opened per pool growth step")
    ORACLE_POOL_IDLE_TIMEOUT: int = Field(default=60, description="Idle session timeout in seconds")
    ORACLE_ACQUIRE_TIMEOUT: float = Field(default=60.0, description="Acquisition timeout in seconds")
    ORACLE_STMT_CACHE_SIZE: int = Field(default=50, description="Statement cache size per session")
    ORACLE_FETCH_ARRAY_SIZE: int = Field(default=1000, description="Cursor arraysize")
    ORACLE_PREFETCH_ROWS: int = Field(default=1000, description="Cursor prefetchrows")
    ORACLE_THICK_MODE: bool = Field(default=True, description="Load Oracle Instant Client (thick mode)")
    ORACLE_WIN_CLIENT_LIB_DIR: str = Field(
        default="C:\\oracle\\instantclient_23_9",
        description="Instant Client directory on Windows",
    )
    ORACLE_LINUX_CLIENT_LIB_DIR: str = Field(
        default="/home/ubuntu/oracle_client/instantclient_23_26",
        description="Instant Client directory on Linux / macOS",
    )

    # PostgreSQL (transactional store); DB_* names kept for older deployments
    PG_HOST: str | None = Field(default=None, validation_alias=AliasChoices("PG_HOST", "DB_HOST"))
    PG_PORT: int = Field(default=5432, validation_alias=AliasChoices("PG_PORT", "DB_PORT"))
    PG_USER: str | None = Field(default=None, validation_alias=AliasChoices("PG_USER", "DB_USER"))
    PG_PASSWORD: str | None = Field(
        default=None, validation_alias=AliasChoices("PG_PASSWORD", "DB_PASSWORD")
    )
    PG_DATABASE: str | None = Field(
        default=None, validation_alias=AliasChoices("PG_DATABASE", "PG_NAME", "DB_NAME")
    )
    PG_SSL: bool | None = Field(default=None, validation_alias=AliasChoices("PG_SSL", "DB_SSL"))
    PG_POOL_MIN: int = Field(default=1, description="Minimum pooled connections")
    PG_POOL_MAX: int = Field(default=10, description="Maximum pooled connections")
    PG_IDLE_TIMEOUT: float = Field(default=30.0, description="Idle connection lifetime in seconds")
    PG_CONNECT_TIMEOUT: float = Field(default=5.0, description="Connect / acquisition timeout in seconds")
    PG_STATEMENT_CACHE_SIZE: int = Field(default=100, description="Prepared statement cache size")

    # Redis
    REDIS_URL: str | None = Field(default=None, description="Full Redis URL (overrides host/port/db)")
    REDIS_HOST: str = Field(default="127.0.0.1", description="Redis server host")
    REDIS_PORT: int = Field(default=6379, description="Redis server port")
    REDIS_DB: int = Field(default=0, description="Redis database number")
    REDIS_PASSWORD: str | None = Field(default=None, description="Redis password (if required)")
    REDIS_CONNECT_TIMEOUT: float = Field(default=5.0, description="Connect timeout in seconds")
    REDIS_SOCKET_TIMEOUT: float = Field(default=5.0, description="Operation timeout in seconds")
    REDIS_CONNECT_ATTEMPTS: int = Field(default=3, description="Connect attempts per reconnect cycle")
    REDIS_BACKOFF_INITIAL: float = Field(default=0.1, description="First backoff delay in seconds")
    REDIS_BACKOFF_MAX: float = Field(default=1.0, description="Backoff delay cap in seconds")
    REDIS_RECONNECT_COOLDOWN: float = Field(
        default=30.0, description="Seconds to stay silent after a failed reconnect cycle"
    )

    # Cache
    CACHE_TTL_PURCHASE_ORDER: int = Field(default=180, description="Purchase order lists (3 min)")
    CACHE_TTL_INDENT: int = Field(default=180, description="Store indent lists (3 min)")
    CACHE_TTL_DASHBOARD: int = Field(default=120, description="Indent dashboard (2 min)")
    CACHE_TTL_GATE_PASS: int = Field(default=180, description="Repair gate passes (3 min)")
    CACHE_TTL_UOM: int = Field(default=3600, description="UOM items (1 hour)")
    CACHE_TTL_COST_LOCATION: int = Field(default=1800, description="Cost locations (30 min)")
    ENABLE_CACHING: bool = Field(default=True, description="Serve reads through the cache")
    CACHE_SINGLE_FLIGHT: bool = Field(
        default=False, description="Share one compute between concurrent misses of the same key"
    )

    # Pools
    POOL_ACQUIRE_WARN_MS: float = Field(default=100.0, description="Slow acquisition warning threshold (ms)")

    # Reporting filters
    REPORT_ENTITY_CODE: str = Field(default="SR", description="ERP entity code")
    REPORT_FROM_DATE: str = Field(default="2025-04-01", description="Financial year start (YYYY-MM-DD)")
    REPORT_PO_SERIES: str = Field(default="U3", description="Purchase order series")
    DEFAULT_DIVISION: str = Field(default="SM", description="Division used when none is given")

    # Logging
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: Literal["json", "console"] = Field(default="json", description="Log output format")

    # Application
    ENVIRONMENT: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment"
    )
    APP_NAME: str = Field(default="Store Operations Reporting API", description="Application name")
    APP_VERSION: str = Field(default="1.0.0", description="Application version")
    API_HOST: str = Field(default="0.0.0.0", description="API host")
    API_PORT: int = Field(default=3004, description="API port")
    CORS_ORIGINS: list[str] = Field(default=["*"], description="Allowed CORS origins")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v.upper()

    # Grouped views
    @property
    def oracle(self) -> 'OracleSettings':
        """Get Oracle settings."""
        return OracleSettings(
            ORACLE_USER=self.ORACLE_USER,
            ORACLE_PASSWORD=self.ORACLE_PASSWORD,
            ORACLE_CONNECTION_STRING=self.ORACLE_CONNECTION_STRING,
            ORACLE_POOL_MIN=self.ORACLE_POOL_MIN,
            ORACLE_POOL_MAX=self.ORACLE_POOL_MAX,
            ORACLE_POOL_INCREMENT=self.ORACLE_POOL_INCREMENT,
            ORACLE_POOL_IDLE_TIMEOUT=self.ORACLE_POOL_IDLE_TIMEOUT,
            ORACLE_ACQUIRE_TIMEOUT=self.ORACLE_ACQUIRE_TIMEOUT,
            ORACLE_STMT_CACHE_SIZE=self.ORACLE_STMT_CACHE_SIZE,
            ORACLE_FETCH_ARRAY_SIZE=self.ORACLE_FETCH_ARRAY_SIZE,
            ORACLE_PREFETCH_ROWS=self.ORACLE_PREFETCH_ROWS,
            ORACLE_THICK_MODE=self.ORACLE_THICK_MODE,
            ORACLE_WIN_CLIENT_LIB_DIR=self.ORACLE_WIN_CLIENT_LIB_DIR,
            ORACLE_LINUX_CLIENT_LIB_DIR=self.ORACLE_LINUX_CLIENT_LIB_DIR,
        )

    @property
    def postgres(self) -> 'PostgresSettings':
        """Get PostgreSQL settings."""
        return PostgresSettings(
            PG_HOST=self.PG_HOST,
            PG_PORT=self.PG_PORT,
            PG_USER=self.PG_USER,
            PG_PASSWORD=self.PG_PASSWORD,
            PG_DATABASE=self.PG_DATABASE,
            PG_SSL=self.PG_SSL,
            PG_POOL_MIN=self.PG_POOL_MIN,
            PG_POOL_MAX=self.PG_POOL_MAX,
            PG_IDLE_TIMEOUT=self.PG_IDLE_TIMEOUT,
            PG_CONNECT_TIMEOUT=self.PG_CONNECT_TIMEOUT,
            PG_STATEMENT_CACHE_SIZE=self.PG_STATEMENT_CACHE_SIZE,
        )

    @property
    def redis(self) -> 'RedisSettings':
        """Get Redis settings."""
        return RedisSettings(
            REDIS_URL=self.REDIS_URL,
            REDIS_HOST=self.REDIS_HOST,
            REDIS_PORT=self.REDIS_PORT,
            REDIS_DB=self.REDIS_DB,
            REDIS_PASSWORD=self.REDIS_PASSWORD,
            REDIS_CONNECT_TIMEOUT=self.REDIS_CONNECT_TIMEOUT,
            REDIS_SOCKET_TIMEOUT=self.REDIS_SOCKET_TIMEOUT,
            REDIS_CONNECT_ATTEMPTS=self.REDIS_CONNECT_ATTEMPTS,
            REDIS_BACKOFF_INITIAL=self.REDIS_BACKOFF_INITIAL,
            REDIS_BACKOFF_MAX=self.REDIS_BACKOFF_MAX,
            REDIS_RECONNECT_COOLDOWN=self.REDIS_RECONNECT_COOLDOWN,
        )

    @property
    def cache(self) -> 'CacheTtlSettings':
        """Get cache settings."""
        return CacheTtlSettings(
            CACHE_TTL_PURCHASE_ORDER=self.CACHE_TTL_PURCHASE_ORDER,
            CACHE_TTL_INDENT=self.CACHE_TTL_INDENT,
            CACHE_TTL_DASHBOARD=self.CACHE_TTL_DASHBOARD,
            CACHE_TTL_GATE_PASS=self.CACHE_TTL_GATE_PASS,
            CACHE_TTL_UOM=self.CACHE_TTL_UOM,
            CACHE_TTL_COST_LOCATION=self.CACHE_TTL_COST_LOCATION,
            ENABLE_CACHING=self.ENABLE_CACHING,
            CACHE_SINGLE_FLIGHT=self.CACHE_SINGLE_FLIGHT,
        )

    @property
    def pool(self) -> 'PoolSettings':
        """Get cross-store pool settings."""
        return PoolSettings(POOL_ACQUIRE_WARN_MS=self.POOL_ACQUIRE_WARN_MS)

    @property
    def reporting(self) -> 'ReportingSettings':
        """Get reporting filter settings."""
        return ReportingSettings(
            REPORT_ENTITY_CODE=self.REPORT_ENTITY_CODE,
            REPORT_FROM_DATE=self.REPORT_FROM_DATE,
            REPORT_PO_SERIES=self.REPORT_PO_SERIES,
            DEFAULT_DIVISION=self.DEFAULT_DIVISION,
        )

    @property
    def logging(self) -> 'LoggingSettings':
        """Get logging settings."""
        return LoggingSettings(LOG_LEVEL=self.LOG_LEVEL, LOG_FORMAT=self.LOG_FORMAT)

    @property
    def app(self) -> 'ApplicationSettings':
        """Get application settings."""
        return ApplicationSettings(
            ENVIRONMENT=self.ENVIRONMENT,
            APP_NAME=self.APP_NAME,
            APP_VERSION=self.APP_VERSION,
            API_HOST=self.API_HOST,
            API_PORT=self.API_PORT,
            CORS_ORIGINS=self.CORS_ORIGINS,
        )

    def ttl_seconds(self, ttl_class: TtlClass) -> int | None:
        """Resolve a TTL class to seconds (None = no expiry)."""
        return self.cache.ttl_seconds(ttl_class)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        populate_by_name=True,
        extra="ignore"  # Ignore extra environment variables
    )


# Global settings instance (singleton pattern)
_settings: Settings | None = None


def load_settings() -> Settings:
    """
    Build Settings from the environment and .env.

    Raises:
        ConfigurationError: A variable is present but cannot be parsed
    """
    try:
        return Settings()
    except ValidationError as e:
        raise ConfigurationError.from_exception(
            e,
            message=f"Invalid configuration: {e.error_count()} setting(s) rejected",
            settings=[".".join(str(part) for part in error["loc"]) for error in e.errors()],
        ).with_suggestion("Check the environment variables and .env file")


def get_settings() -> Settings:
    """
    Get the global settings instance (singleton).

    Returns:
        Settings: Global settings instance
    """
    global _settings

    if _settings is None:
        _settings = load_settings()

    return _settings


def reload_settings() -> Settings:
    """
    Reload settings (useful for testing).

    Returns:
        Settings: New settings instance
    """
    global _settings
    _settings = load_settings()
    return _settings
