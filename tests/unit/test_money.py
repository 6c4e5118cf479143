"""
Unit tests for Money.

Verifies:
- Minor-unit storage and major-unit parsing
- Refusal of floats and of excess precision
- Currency mixing is rejected
- apply_rate() rounds once, half-even
"""

from decimal import Decimal

import pytest

from obligation_kernel.domain.values import Currency, Money, sum_money


class TestMoneyConstruction:
    def test_of_parses_major_units(self):
        money = Money.of("1000.00", "GTQ")
        assert money.minor_units == 100000
        assert money.amount == Decimal("1000.00")
        assert money.currency == Currency("GTQ")

    def test_of_accepts_decimal_and_int(self):
        assert Money.of(Decimal("12.5"), "GTQ").minor_units == 1250
        assert Money.of(7, "GTQ").minor_units == 700

    def test_zero_decimal_currency(self):
        assert Money.of("1500", "JPY").minor_units == 1500

    def test_three_decimal_currency(self):
        assert Money.of("1.234", "KWD").minor_units == 1234

    def test_float_refused(self):
        with pytest.raises(TypeError):
            Money.of(10.5, "GTQ")

    def test_float_minor_units_refused(self):
        with pytest.raises(TypeError):
            Money(10.0, Currency("GTQ"))

    def test_bool_minor_units_refused(self):
        with pytest.raises(TypeError):
            Money(True, Currency("GTQ"))

    def test_excess_precision_rejected_not_rounded(self):
        with pytest.raises(ValueError, match="more precision"):
            Money.of("10.005", "GTQ")

    def test_non_numeric_rejected(self):
        with pytest.raises(ValueError):
            Money.of("ten", "GTQ")

    def test_infinite_rejected(self):
        with pytest.raises(ValueError):
            Money.of("Infinity", "GTQ")

    def test_unknown_currency_rejected(self):
        with pytest.raises(ValueError):
            Money.of("1.00", "XYZ")

    def test_from_minor_and_zero(self):
        assert Money.from_minor(250, "GTQ").amount == Decimal("2.50")
        assert Money.zero("GTQ").is_zero


class TestMoneyArithmetic:
    def test_add_and_subtract(self):
        a = Money.of("600.00", "GTQ")
        b = Money.of("400.00", "GTQ")
        assert (a + b) == Money.of("1000.00", "GTQ")
        assert (a - b) == Money.of("200.00", "GTQ")

    def test_negation(self):
        assert (-Money.of("1.00", "GTQ")).is_negative

    def test_currency_mismatch_on_add(self):
        with pytest.raises(ValueError, match="different currencies"):
            Money.of("1.00", "GTQ") + Money.of("1.00", "USD")

    def test_currency_mismatch_on_compare(self):
        with pytest.raises(ValueError):
            Money.of("1.00", "GTQ") < Money.of("2.00", "USD")

    def test_ordering(self):
        small = Money.of("0.01", "GTQ")
        big = Money.of("0.02", "GTQ")
        assert small < big
        assert big >= small
        assert small <= small

    def test_sum_money_starts_at_zero(self):
        assert sum_money([], "GTQ") == Money.zero("GTQ")
        total = sum_money(
            [Money.of("0.10", "GTQ"), Money.of("0.20", "GTQ")], "GTQ"
        )
        assert total == Money.of("0.30", "GTQ")

    def test_exact_sums_where_floats_drift(self):
        cents = [Money.of("0.10", "GTQ")] * 10
        assert sum_money(cents, "GTQ") == Money.of("1.00", "GTQ")


class TestApplyRate:
    def test_half_even_rounds_down_on_even(self):
        # 2.5 minor units -> 2
        assert Money.from_minor(25, "GTQ").apply_rate(Decimal("0.1")).minor_units == 2

    def test_half_even_rounds_up_on_odd(self):
        assert Money.from_minor(35, "GTQ").apply_rate(Decimal("0.1")).minor_units == 4

    def test_float_rate_refused(self):
        with pytest.raises(TypeError):
            Money.of("1.00", "GTQ").apply_rate(0.12)

    def test_iva_on_round_amount(self):
        assert Money.of("1000.00", "GTQ").apply_rate("0.12") == Money.of("120.00", "GTQ")


class TestMoneyDisplay:
    def test_str(self):
        assert str(Money.of("1000.00", "GTQ")) == "1000.00 GTQ"

    def test_hashable(self):
        assert len({Money.of("1.00", "GTQ"), Money.from_minor(100, "GTQ")}) == 1
