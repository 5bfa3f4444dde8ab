"""Net sales for one format and period: gross sales less approved returns."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Union

from ..errors import InvalidEngineInput
from ..money import ZERO, DecimalInput, Quantity, exact_arithmetic, to_decimal, to_quantity


@dataclass(frozen=True)
class NetSales:
    """Gross, returns and net figures for a format."""

    gross_quantity: Quantity
    gross_revenue: Decimal
    returns_quantity: Quantity
    returns_amount: Decimal
    net_quantity: Quantity
    net_revenue: Decimal

    @property
    def has_net_returns(self) -> bool:
        return self.returns_quantity > self.gross_quantity


def calculate_net_sales(
    gross_quantity: Union[Quantity, str] = 0,
    gross_revenue: DecimalInput = 0,
    returns_quantity: Union[Quantity, str] = 0,
    returns_amount: DecimalInput = 0,
    allow_negative: bool = False,
) -> NetSales:
    """
    Net quantity and revenue after approved returns.

    Period-mode statements cap both figures at zero. Lifetime mode passes
    ``allow_negative=True`` so excess returns can walk cumulative quantity
    back down through the allocator.
    """
    gross_qty = to_quantity(gross_quantity, "gross_quantity")
    returns_qty = to_quantity(returns_quantity, "returns_quantity")
    gross_rev = to_decimal(gross_revenue, "gross_revenue")
    returns_amt = to_decimal(returns_amount, "returns_amount")

    for label, value in (
        ("gross_quantity", gross_qty),
        ("returns_quantity", returns_qty),
        ("gross_revenue", gross_rev),
        ("returns_amount", returns_amt),
    ):
        if value < 0:
            raise InvalidEngineInput(f"{label} cannot be negative, got {value}")

    with exact_arithmetic():
        net_qty = gross_qty - returns_qty
        net_rev = gross_rev - returns_amt

    if not allow_negative:
        net_qty = max(net_qty, 0)
        net_rev = max(net_rev, ZERO)

    return NetSales(
        gross_quantity=gross_qty,
        gross_revenue=gross_rev,
        returns_quantity=returns_qty,
        returns_amount=returns_amt,
        net_quantity=net_qty,
        net_revenue=net_rev,
    )
