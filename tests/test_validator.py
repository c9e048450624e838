"""Tests for the input rules at the ledger boundary."""

import pytest
from decimal import Decimal

from pocketbank.errors import InvalidAmount, InvalidInput
from pocketbank.validation import (
    as_money,
    as_quantity,
    validate_name,
    validate_pin,
    validate_positive_amount,
    validate_positive_quantity,
)


class TestMoney:
    """Tests for amount normalization."""

    def test_as_money_rounds_half_even(self):
        assert as_money("2.345") == Decimal("2.34")
        assert as_money("2.355") == Decimal("2.36")

    def test_as_money_accepts_int_float_and_str(self):
        assert as_money(10) == Decimal("10.00")
        assert as_money(10.5) == Decimal("10.50")
        assert as_money(" 7.1 ") == Decimal("7.10")

    @pytest.mark.parametrize("value", ["abc", "", None, "NaN", "inf", float("nan"), True])
    def test_non_numbers_rejected(self, value):
        with pytest.raises(InvalidAmount):
            as_money(value)

    def test_as_money_largest_cent_value(self):
        assert as_money("9" * 26) == Decimal("9" * 26 + ".00")

    @pytest.mark.parametrize("value", ["1e26", "1e30", 3.4e38])
    def test_as_money_rejects_values_too_large_for_cents(self, value):
        with pytest.raises(InvalidAmount):
            as_money(value)

    def test_as_quantity_keeps_precision(self):
        assert as_quantity("0.123456789") == Decimal("0.123456789")

    @pytest.mark.parametrize("value", ["0", "-5", "0.004"])
    def test_positive_amount_rejects_zero_and_negative(self, value):
        with pytest.raises(InvalidAmount):
            validate_positive_amount(value)

    def test_positive_amount_returns_normalized(self):
        assert validate_positive_amount("12.5") == Decimal("12.50")

    def test_positive_quantity(self):
        assert validate_positive_quantity("0.0001") == Decimal("0.0001")
        with pytest.raises(InvalidAmount):
            validate_positive_quantity("0")

    def test_invalid_amount_is_invalid_input(self):
        """Drivers can catch every malformed value as InvalidInput."""
        with pytest.raises(InvalidInput):
            validate_positive_amount("-1")


class TestIdentityRules:
    """Tests for name and PIN checks."""

    @pytest.mark.parametrize("pin", [1000, 9999, "1234", " 4321 "])
    def test_valid_pins(self, pin):
        assert 1000 <= validate_pin(pin) <= 9999

    @pytest.mark.parametrize("pin", [999, 10000, "12a4", "", None, True, 12.5])
    def test_invalid_pins(self, pin):
        with pytest.raises(InvalidInput):
            validate_pin(pin)

    def test_valid_name(self):
        assert validate_name("Alice", max_length=49) == "Alice"

    @pytest.mark.parametrize("name", ["", "al1ce", "bob smith", "zoë", None])
    def test_invalid_names(self, name):
        with pytest.raises(InvalidInput):
            validate_name(name, max_length=49)

    def test_name_length_bound(self):
        assert validate_name("a" * 49, max_length=49)
        with pytest.raises(InvalidInput):
            validate_name("a" * 50, max_length=49)
