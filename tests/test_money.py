"""Tests for the decimal arithmetic layer."""

from decimal import Decimal

import pytest

from royalty_engine.errors import InvalidEngineInput, PrecisionLossDetected
from royalty_engine.money import (
    ceil_divide,
    check_scale,
    exact_arithmetic,
    fractional_digits,
    from_cents,
    quantize_money,
    quantize_rate,
    to_decimal,
    to_quantity,
)


class TestToDecimal:
    """Conversion of inbound values."""

    def test_plain_string(self):
        assert to_decimal("0.12") == Decimal("0.12")

    def test_currency_string(self):
        assert to_decimal(" $ 1,234.50 ") == Decimal("1234.50")

    def test_int(self):
        assert to_decimal(20) == Decimal("20")

    def test_decimal_passthrough(self):
        value = Decimal("19.99")
        assert to_decimal(value) is value

    @pytest.mark.parametrize("value", [0.1, 20.0, True])
    def test_float_and_bool_rejected(self, value):
        with pytest.raises(InvalidEngineInput):
            to_decimal(value)

    @pytest.mark.parametrize("value", ["", "   ", "abc", "NaN", "Infinity"])
    def test_bad_strings_rejected(self, value):
        with pytest.raises(InvalidEngineInput):
            to_decimal(value)

    def test_unsupported_type_rejected(self):
        with pytest.raises(InvalidEngineInput):
            to_decimal([1])

    def test_invalid_input_is_value_error(self):
        with pytest.raises(ValueError):
            to_decimal(1.5)


class TestFromCents:

    def test_cents(self):
        assert from_cents(12345) == Decimal("123.45")

    def test_float_rejected(self):
        with pytest.raises(InvalidEngineInput):
            from_cents(123.0)


class TestToQuantity:

    def test_int_passthrough(self):
        assert to_quantity(50000) == 50000

    def test_whole_string_becomes_int(self):
        result = to_quantity("50,000")
        assert result == 50000
        assert isinstance(result, int)

    def test_whole_decimal_becomes_int(self):
        assert isinstance(to_quantity(Decimal("12000.0")), int)

    def test_fractional_decimal_kept(self):
        assert to_quantity(Decimal("833.5")) == Decimal("833.5")

    def test_float_rejected(self):
        with pytest.raises(InvalidEngineInput):
            to_quantity(1000.0)


class TestScale:

    @pytest.mark.parametrize(
        "value,expected",
        [
            (Decimal("0.1000"), 1),
            (Decimal("0.00"), 0),
            (Decimal("12"), 0),
            (Decimal("1.2345"), 4),
            (Decimal("1E+3"), 0),
            (Decimal("20.50"), 1),
        ],
    )
    def test_fractional_digits(self, value, expected):
        assert fractional_digits(value) == expected

    def test_check_scale_accepts_trailing_zeros(self):
        assert check_scale(Decimal("0.120000"), 4) == Decimal("0.12")

    def test_check_scale_rejects_extra_digits(self):
        with pytest.raises(PrecisionLossDetected):
            check_scale(Decimal("0.12345"), 4, "rate")


class TestQuantize:

    def test_money_half_up(self):
        assert quantize_money(Decimal("10.005")) == Decimal("10.01")

    def test_money_scale(self):
        assert str(quantize_money(Decimal("26800"))) == "26800.00"

    def test_rate(self):
        assert quantize_rate(Decimal("0.123456")) == Decimal("0.1235")

    def test_quantize_inside_exact_block(self):
        with exact_arithmetic():
            assert quantize_money(Decimal("1.239")) == Decimal("1.24")


class TestExactArithmetic:

    def test_exact_product(self):
        with exact_arithmetic():
            result = 7000 * Decimal("20") * Decimal("0.12")
        assert result == Decimal("16800")

    def test_inexact_division_raises(self):
        with pytest.raises(PrecisionLossDetected):
            with exact_arithmetic():
                Decimal("1") / Decimal("3")

    def test_rounded_sum_raises(self):
        with pytest.raises(PrecisionLossDetected):
            with exact_arithmetic():
                Decimal("1E+40") + Decimal("1")


class TestCeilDivide:

    @pytest.mark.parametrize(
        "numerator,denominator,expected",
        [
            (25000, 1000, 25),
            (5001, 1000, 6),
            (0, 7, 0),
            (10, Decimal("2.5"), 4),
            (11, Decimal("2.5"), 5),
        ],
    )
    def test_ceiling(self, numerator, denominator, expected):
        assert ceil_divide(numerator, denominator) == expected

    def test_zero_denominator(self):
        with pytest.raises(InvalidEngineInput):
            ceil_divide(1, 0)
