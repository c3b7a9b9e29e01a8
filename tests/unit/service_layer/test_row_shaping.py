"""
Unit Tests for Row Shaping and Cache Keys

Driver values must come out JSON-native so a cache hit is
indistinguishable from a miss.
"""

from datetime import date, datetime
from decimal import Decimal

import pytest

from storeops.application.services import cache_keys
from storeops.application.services.base import list_result, round_percent, shape_row, to_json_native, to_number


@pytest.mark.unit
class TestToJsonNative:
    """Test suite for driver value conversion."""

    def test_integral_decimal_becomes_int(self):
        value = to_json_native(Decimal("12.000"))

        assert value == 12
        assert isinstance(value, int)

    def test_fractional_decimal_becomes_float(self):
        assert to_json_native(Decimal("2.5")) == 2.5

    def test_non_finite_becomes_none(self):
        assert to_json_native(Decimal("NaN")) is None
        assert to_json_native(float("inf")) is None

    def test_dates_become_iso_strings(self):
        assert to_json_native(datetime(2025, 4, 1, 20, 0)) == "2025-04-01T20:00:00"
        assert to_json_native(date(2025, 4, 1)) == "2025-04-01"

    def test_other_values_unchanged(self):
        assert to_json_native("NOS") == "NOS"
        assert to_json_native(None) is None

    def test_shape_row(self):
        row = shape_row({"qtyorder": Decimal("10"), "vrdate": date(2025, 5, 2), "um": "KG"})

        assert row == {"qtyorder": 10, "vrdate": "2025-05-02", "um": "KG"}


@pytest.mark.unit
class TestNumbers:
    """Aggregate coercion and percentage rounding."""

    @pytest.mark.parametrize(
        "raw, expected",
        [(None, 0), ("abc", 0), (float("nan"), 0), (Decimal("7"), 7), ("3.5", 3.5), (4, 4), (2.0, 2)],
    )
    def test_to_number(self, raw, expected):
        assert to_number(raw) == expected

    def test_round_percent_half_up(self):
        """Test one-decimal rounding with halves going up."""
        assert round_percent(1, 3) == 33.3
        assert round_percent(2, 3) == 66.7
        assert round_percent(1, 8) == 12.5
        assert round_percent(1, 16) == 6.3

    def test_round_percent_zero_total(self):
        assert round_percent(5, 0) == 0.0

    def test_list_result(self):
        assert list_result([{"a": 1}, {"a": 2}]) == {"rows": [{"a": 1}, {"a": 2}], "total": 2}


@pytest.mark.unit
class TestCacheKeys:
    def test_keys(self):
        assert cache_keys.po_pending() == "po:pending"
        assert cache_keys.indent_dashboard() == "indent:dashboard"
        assert cache_keys.gate_pass_counts() == "gatepass:counts"
        assert cache_keys.uom_items() == "uom:items"
        assert cache_keys.cost_location("rp") == "costlocation:RP"
        assert cache_keys.domain_pattern("po") == "po:*"
