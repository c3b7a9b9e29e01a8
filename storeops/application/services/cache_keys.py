"""
Cache key builders.

Keys are "<domain>:<qualifier>"; services and invalidation hooks both
build them here so a write and its invalidation always agree.
"""

from storeops.core.config.constants import (
    CACHE_DOMAIN_COST_LOCATION,
    CACHE_DOMAIN_GATE_PASS,
    CACHE_DOMAIN_INDENT,
    CACHE_DOMAIN_PO,
    CACHE_DOMAIN_UOM,
    CACHE_WILDCARD,
)


def build_key(domain: str, qualifier: str) -> str:
    return f"{domain}:{qualifier}"


def domain_pattern(domain: str) -> str:
    """Pattern matching every key of a domain."""
    return build_key(domain, CACHE_WILDCARD)


# Purchase orders
def po_pending() -> str:
    return build_key(CACHE_DOMAIN_PO, "pending")


def po_history() -> str:
    return build_key(CACHE_DOMAIN_PO, "history")


# Store indents
def indent_pending() -> str:
    return build_key(CACHE_DOMAIN_INDENT, "pending")


def indent_history() -> str:
    return build_key(CACHE_DOMAIN_INDENT, "history")


def indent_dashboard() -> str:
    return build_key(CACHE_DOMAIN_INDENT, "dashboard")


# Repair gate passes
def gate_pass_pending() -> str:
    return build_key(CACHE_DOMAIN_GATE_PASS, "pending")


def gate_pass_received() -> str:
    return build_key(CACHE_DOMAIN_GATE_PASS, "received")


def gate_pass_counts() -> str:
    return build_key(CACHE_DOMAIN_GATE_PASS, "counts")


# Reference data
def uom_items() -> str:
    return build_key(CACHE_DOMAIN_UOM, "items")


def cost_location(div_code: str) -> str:
    """Key for one division; callers resolve the default division first."""
    return build_key(CACHE_DOMAIN_COST_LOCATION, div_code.strip().upper())
