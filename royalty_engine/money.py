"""
Decimal arithmetic layer for royalty money and rates.

RULES:
------
1. Every monetary amount, rate and unit price is a ``Decimal`` built from a
   decimal string, an int, or integer cents. A binary ``float`` is rejected
   wherever it enters the engine.
2. Multiplication and addition of royalty slices happen inside
   ``exact_arithmetic()``. Any operation that would have to round raises
   ``PrecisionLossDetected`` instead of dropping digits.
3. Values are re-quantized (2 places for currency, 4 for rates) only where a
   computed amount is combined with a stored balance, e.g. recoupment and
   ownership splits. Display rounding is the caller's job.
4. Division is used only for display quotients (months to next tier).
"""

import decimal
import re
from contextlib import contextmanager
from decimal import Context, Decimal, Inexact, InvalidOperation, Rounded
from typing import Iterator, Union

from .config import settings
from .errors import InvalidEngineInput, PrecisionLossDetected

DecimalInput = Union[Decimal, int, str]
Quantity = Union[int, Decimal]

ZERO = Decimal("0")


def _rounding_mode() -> str:
    mode = settings.precision.rounding
    if not mode.startswith("ROUND_") or not hasattr(decimal, mode):
        raise InvalidEngineInput(f"Unknown rounding mode in settings: {mode}")
    return getattr(decimal, mode)


def _quantize_context() -> Context:
    # Fresh context: default traps only, so quantize may round.
    return Context(prec=settings.precision.context_precision, rounding=_rounding_mode())


def to_decimal(value: DecimalInput, label: str = "value") -> Decimal:
    """
    Convert an int, Decimal or decimal string to a finite Decimal.

    Strings may carry a currency sign, thousands separators and whitespace,
    e.g. " $  1,234.50". Floats are rejected.

    Args:
        value: Input value
        label: Name used in error messages

    Returns:
        Decimal value
    """
    if isinstance(value, (bool, float)):
        raise InvalidEngineInput(
            f"{label} must be a Decimal, int or decimal string, not {type(value).__name__} ({value!r})"
        )

    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, str):
        cleaned = re.sub(r"[$,\s]", "", value.strip())
        if not cleaned:
            raise InvalidEngineInput(f"{label} is an empty string")
        try:
            result = Decimal(cleaned)
        except InvalidOperation as e:
            raise InvalidEngineInput(f"{label} is not a decimal number: {value!r}") from e
    else:
        raise InvalidEngineInput(f"{label} has unsupported type {type(value).__name__}")

    if not result.is_finite():
        raise InvalidEngineInput(f"{label} must be finite, got {result}")
    return result


def from_cents(cents: int) -> Decimal:
    """Build a currency amount from integer cents."""
    if isinstance(cents, bool) or not isinstance(cents, int):
        raise InvalidEngineInput(f"cents must be an int, got {type(cents).__name__}")
    return Decimal(cents).scaleb(-settings.precision.money_places)


def to_quantity(value: Union[Quantity, str], label: str = "quantity") -> Quantity:
    """
    Convert a unit quantity to an int (or a Decimal for fractional averages).

    Whole-number Decimals and strings come back as int.
    """
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    result = to_decimal(value, label)
    if result == result.to_integral_value():
        return int(result)
    return result


def fractional_digits(value: Decimal) -> int:
    """Number of significant digits after the decimal point (trailing zeros ignored)."""
    _, digits, exponent = value.as_tuple()
    if exponent >= 0 or not any(digits):
        return 0
    trailing = 0
    for digit in reversed(digits):
        if digit != 0 or trailing >= -exponent:
            break
        trailing += 1
    return -exponent - trailing


def check_scale(value: Decimal, places: int, label: str = "value") -> Decimal:
    """Raise PrecisionLossDetected if value carries more than ``places`` decimals."""
    digits = fractional_digits(value)
    if digits > places:
        raise PrecisionLossDetected(
            f"{label} {value} has {digits} decimal places; at most {places} supported"
        )
    return value


def quantize_money(value: Decimal) -> Decimal:
    """Re-quantize to the currency scale (2 places by default)."""
    exp = Decimal(1).scaleb(-settings.precision.money_places)
    return value.quantize(exp, context=_quantize_context())


def quantize_rate(value: Decimal) -> Decimal:
    """Re-quantize to the rate scale (4 places by default)."""
    exp = Decimal(1).scaleb(-settings.precision.rate_places)
    return value.quantize(exp, context=_quantize_context())


@contextmanager
def exact_arithmetic() -> Iterator[Context]:
    """
    Run decimal arithmetic that must not round.

    Inside the block the local context traps Inexact and Rounded; either
    signal is re-raised as PrecisionLossDetected.
    """
    with decimal.localcontext() as ctx:
        ctx.prec = settings.precision.context_precision
        ctx.traps[Inexact] = True
        ctx.traps[Rounded] = True
        try:
            yield ctx
        except (Inexact, Rounded) as e:
            raise PrecisionLossDetected(
                f"Decimal result needs more than {ctx.prec} significant digits"
            ) from e


def ceil_divide(numerator: Quantity, denominator: Quantity) -> int:
    """Ceiling of numerator / denominator for non-negative numerator, positive denominator."""
    if denominator <= 0:
        raise InvalidEngineInput(f"denominator must be positive, got {denominator}")
    if numerator < 0:
        raise InvalidEngineInput(f"numerator must be non-negative, got {numerator}")
    quotient, remainder = divmod(numerator, denominator)
    return int(quotient) + (1 if remainder else 0)
