"""
Unit tests for money conversion.

Verifies:
- Strict parsing of persisted amounts
- Lenient coercion of user input (bad input becomes zero)
"""

import pytest
from decimal import Decimal, InvalidOperation

from cash_kernel.db.types import coerce_money, money_from_str


class TestMoneyFromStr:
    """Tests for money_from_str function."""

    def test_simple_decimal(self):
        assert money_from_str("100.50") == Decimal("100.50")

    def test_negative(self):
        assert money_from_str("-100.50") == Decimal("-100.50")

    def test_invalid_string_raises(self):
        """Persisted data is trusted; garbage is an error, not zero."""
        with pytest.raises(InvalidOperation):
            money_from_str("not a number")


class TestCoerceMoney:
    """Tests for the lenient user-input path."""

    @pytest.mark.parametrize("raw", [None, "", "   ", "abc", "12abc", True, False])
    def test_unusable_input_becomes_zero(self, raw):
        assert coerce_money(raw) == Decimal("0")

    def test_numeric_string(self):
        assert coerce_money(" 42.10 ") == Decimal("42.10")

    def test_comma_decimal_separator(self):
        assert coerce_money("12,50") == Decimal("12.50")

    @pytest.mark.parametrize(
        "raw, expected",
        [("1,000.50", "1000.50"), ("1,234,567", "1234567"), ("12,345,678.9", "12345678.9")],
    )
    def test_thousands_separators(self, raw, expected):
        assert coerce_money(raw) == Decimal(expected)

    def test_int(self):
        assert coerce_money(7) == Decimal("7")

    def test_float_goes_through_str(self):
        """0.1 must not become 0.1000000000000000055511151231257827."""
        assert coerce_money(0.1) == Decimal("0.1")

    def test_decimal_passthrough(self):
        assert coerce_money(Decimal("3.33")) == Decimal("3.33")

    @pytest.mark.parametrize("raw", ["NaN", "Infinity", Decimal("NaN")])
    def test_non_finite_becomes_zero(self, raw):
        assert coerce_money(raw) == Decimal("0")

