#!/usr/bin/env python3
"""
System Constants and Enumerations

This module defines system-wide constants and enumerations used across
the reporting backend.

Architectural Decision: Centralized constants for maintainability
- Single source of truth for magic numbers
- Type-safe enums for store identifiers and TTL classes
- Cache key domains live here so invalidation and services agree on them
"""

from enum import Enum

# ============================================================================
# Stage Identifiers (for structured logging)
# ============================================================================


class Stage(str, Enum):
    """
    Processing stages used in the ``stage`` field of every log event.

    Format: {PREFIX}.{STEP}_{DESCRIPTIVE_NAME}

    Examples:
        stage="POOL.2_ACQUIRE"
        stage="CACHE.1_LOOKUP"
    """

    # Startup / shutdown
    APP_STARTUP = "APP.0_STARTUP"
    APP_SHUTDOWN = "APP.9_SHUTDOWN"

    # Connection pools
    POOL_INIT = "POOL.1_INITIALIZE"
    POOL_ACQUIRE = "POOL.2_ACQUIRE"
    POOL_RELEASE = "POOL.3_RELEASE"
    POOL_CLOSE = "POOL.4_CLOSE"
    POOL_BOOTSTRAP = "POOL.0_CLIENT_BOOTSTRAP"

    # Cache transport
    REDIS_CONNECT = "REDIS.1_CONNECT"
    REDIS_OPERATION = "REDIS.2_OPERATION"
    REDIS_DISCONNECT = "REDIS.3_DISCONNECT"

    # Cache-aside orchestration
    CACHE_LOOKUP = "CACHE.1_LOOKUP"
    CACHE_COMPUTE = "CACHE.2_COMPUTE"
    CACHE_WRITE = "CACHE.3_WRITE"
    CACHE_INVALIDATE = "CACHE.4_INVALIDATE"

    # Query services
    QUERY = "QUERY.1_EXECUTE"
    DASHBOARD = "DASH.1_AGGREGATE"
    INVALIDATION = "INVALIDATE.1_HOOK"

    # Health
    HEALTH = "HEALTH.1_CHECK"


# ============================================================================
# Backend Stores
# ============================================================================


class StoreId(str, Enum):
    """
    Relational backends known to the pool manager.

    ANALYTICAL: Legacy ERP reporting store (Oracle)
    TRANSACTIONAL: Repair / auth store (PostgreSQL)
    """

    ANALYTICAL = "analytical"
    TRANSACTIONAL = "transactional"


# ============================================================================
# TTL Classes
# ============================================================================


class TtlClass(str, Enum):
    """
    Named TTL classes shared by every key of a reporting domain.

    The seconds for each class come from settings (``CacheTtlSettings``);
    the enum only names them.
    """

    PURCHASE_ORDER = "purchase_order"
    INDENT = "indent"
    DASHBOARD = "dashboard"
    GATE_PASS = "gate_pass"
    UOM = "uom"
    COST_LOCATION = "cost_location"


# ============================================================================
# Health States
# ============================================================================


class HealthStatus(str, Enum):
    """Health status enumeration."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"
    NOT_CONFIGURED = "not_configured"
    UNAVAILABLE = "unavailable"


# ============================================================================
# Cache Key Domains
# ============================================================================

CACHE_DOMAIN_PO = "po"
CACHE_DOMAIN_INDENT = "indent"
CACHE_DOMAIN_GATE_PASS = "gatepass"
CACHE_DOMAIN_UOM = "uom"
CACHE_DOMAIN_COST_LOCATION = "costlocation"

# Wildcard understood by the cache client's scan-then-delete
CACHE_WILDCARD = "*"

# SCAN batch hint
CACHE_SCAN_COUNT = 100

# ============================================================================
# Reporting Defaults
# ============================================================================

# Division whose cost locations are the ones without any division
DIVISION_CORPORATE = "CO"

# Dashboard leaderboard size
DASHBOARD_TOP_N = 10

# ============================================================================
# HTTP Headers
# ============================================================================

HEADER_REQUEST_ID = "X-Request-ID"
