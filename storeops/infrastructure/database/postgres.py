"""
Transactional store adapter (PostgreSQL, asyncpg).

Pool defaults follow the production deployment: up to 10 connections,
30s idle lifetime, 5s connect / acquire timeout. SSL is switched on for
RDS endpoints with certificate verification disabled.

Queries use the same named-bind style as the analytical store
(``:name``); binds are rewritten to asyncpg's positional ``$n`` form.
"""

import asyncio
import re
import ssl
from typing import Any

import asyncpg

from storeops.core.config.constants import StoreId
from storeops.core.config.settings import PostgresSettings, Settings
from storeops.core.exceptions import (
    ConnectionUnavailableError,
    QueryFailedError,
)
from storeops.core.logging import get_logger

logger = get_logger(__name__)

# :name, but not the :: cast operator
_NAMED_BIND = re.compile(r"(?<!:):([A-Za-z_][A-Za-z0-9_]*)")


def to_positional(sql: str, params: dict[str, Any] | None) -> tuple[str, list[Any]]:
    """
    Rewrite ``:name`` binds into ``$1..$n``.

    A name used twice maps to the same position.

    Raises:
        QueryFailedError: A bind in the SQL has no value in params
    """
    params = params or {}
    positions: dict[str, int] = {}
    args: list[Any] = []

    def replace(match: re.Match) -> str:
        name = match.group(1)
        if name not in positions:
            if name not in params:
                raise QueryFailedError(
                    f"Missing value for bind ':{name}'",
                    details={"store_id": StoreId.TRANSACTIONAL.value, "bind": name},
                )
            args.append(params[name])
            positions[name] = len(args)
        return f"${positions[name]}"

    return _NAMED_BIND.sub(replace, sql), args


def build_ssl_context(settings: PostgresSettings) -> ssl.SSLContext | None:
    """SSL context for the pool, or None when SSL is off."""
    if not settings.ssl_enabled:
        return None
    context = ssl.create_default_context()
    context.check_hostname = False
    context.verify_mode = ssl.CERT_NONE
    return context


class PostgresConnection:
    """BackendConnection over one asyncpg connection."""

    def __init__(self, raw: asyncpg.Connection):
        self.raw = raw

    async def fetch_all(self, sql: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        query, args = to_positional(sql, params)
        try:
            records = await self.raw.fetch(query, *args)
        except asyncpg.PostgresError as e:
            raise QueryFailedError.from_exception(
                e,
                message=f"Query failed on {StoreId.TRANSACTIONAL.value} store: {e}",
                store_id=StoreId.TRANSACTIONAL.value,
            )
        return [{key.lower(): value for key, value in record.items()} for record in records]

    async def fetch_one(self, sql: str, params: dict[str, Any] | None = None) -> dict[str, Any] | None:
        rows = await self.fetch_all(sql, params)
        return rows[0] if rows else None


class PostgresPool:
    """BackendPool over asyncpg.Pool."""

    def __init__(self, pool: asyncpg.Pool):
        self._pool = pool

    async def acquire(self, timeout: float) -> PostgresConnection:
        try:
            raw = await self._pool.acquire(timeout=timeout)
        except asyncio.TimeoutError as e:
            raise ConnectionUnavailableError.from_exception(
                e,
                message=(
                    f"No connection available from {StoreId.TRANSACTIONAL.value} pool "
                    f"within {timeout}s"
                ),
                store_id=StoreId.TRANSACTIONAL.value,
                timeout=timeout,
                **self.stats(),
            )
        except (asyncpg.PostgresError, OSError) as e:
            raise ConnectionUnavailableError.from_exception(
                e,
                message=f"No connection available from {StoreId.TRANSACTIONAL.value} pool: {e}",
                store_id=StoreId.TRANSACTIONAL.value,
            )
        return PostgresConnection(raw)

    async def release(self, connection: PostgresConnection) -> None:
        await self._pool.release(connection.raw)

    async def close(self) -> None:
        await self._pool.close()

    def stats(self) -> dict[str, Any]:
        size = self._pool.get_size()
        return {
            "size": size,
            "in_use": size - self._pool.get_idle_size(),
            "max": self._pool.get_max_size(),
        }


class PostgresDriver:
    """StoreDriver for the transactional store."""

    store_id = StoreId.TRANSACTIONAL

    def is_configured(self, settings: Settings) -> bool:
        return settings.postgres.is_configured

    def missing_reason(self, settings: Settings) -> str:
        postgres = settings.postgres
        missing = [
            name
            for name, value in (
                ("PG_HOST", postgres.PG_HOST),
                ("PG_USER", postgres.PG_USER),
                ("PG_PASSWORD", postgres.PG_PASSWORD),
            )
            if not value
        ]
        return f"missing {', '.join(missing)}"

    def acquire_timeout(self, settings: Settings) -> float:
        return settings.PG_CONNECT_TIMEOUT

    async def bootstrap(self, settings: Settings) -> None:
        return None

    async def create_pool(self, settings: Settings) -> PostgresPool:
        postgres = settings.postgres
        try:
            pool = await asyncpg.create_pool(
                host=postgres.PG_HOST,
                port=postgres.PG_PORT,
                user=postgres.PG_USER,
                password=postgres.PG_PASSWORD,
                database=postgres.PG_DATABASE,
                ssl=build_ssl_context(postgres),
                min_size=min(postgres.PG_POOL_MIN, postgres.PG_POOL_MAX),
                max_size=postgres.PG_POOL_MAX,
                max_inactive_connection_lifetime=postgres.PG_IDLE_TIMEOUT,
                statement_cache_size=postgres.PG_STATEMENT_CACHE_SIZE,
                timeout=postgres.PG_CONNECT_TIMEOUT,
            )
        except (asyncpg.PostgresError, OSError, asyncio.TimeoutError) as e:
            raise ConnectionUnavailableError.from_exception(
                e,
                message=f"Failed to create {StoreId.TRANSACTIONAL.value} pool: {e}",
                store_id=StoreId.TRANSACTIONAL.value,
                host=postgres.PG_HOST,
                ssl=postgres.ssl_enabled,
            )
        return PostgresPool(pool)
