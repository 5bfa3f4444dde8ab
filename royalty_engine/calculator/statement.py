"""
Royalty for one contract and statement period, across formats.

Each format's net units are allocated across that format's tiers, the
per-format royalties are summed, and the total is recouped once against the
contract advance. Nothing is persisted: the caller stores the new cumulative
positions and advance balance.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Mapping, Sequence, Tuple, Union

from ..errors import InvalidEngineInput, InvalidTierSchedule
from ..models import (
    AdvanceBalance,
    AllocationResult,
    RecoupmentResult,
    RoyaltyTier,
    SalesFormat,
    TierCalculationMode,
)
from ..money import ZERO, Quantity, exact_arithmetic, to_decimal, to_quantity
from .allocator import allocate
from .net_sales import calculate_net_sales
from .recoupment import apply_recoupment

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FormatSales:
    """Sales and approved returns for one format in the period."""

    format: SalesFormat
    units_sold: Quantity
    unit_price: Decimal
    units_returned: Quantity = 0
    lifetime_quantity_before: Quantity = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "format", SalesFormat.parse(self.format))
        object.__setattr__(self, "units_sold", to_quantity(self.units_sold, "units_sold"))
        object.__setattr__(self, "units_returned", to_quantity(self.units_returned, "units_returned"))
        object.__setattr__(
            self,
            "lifetime_quantity_before",
            to_quantity(self.lifetime_quantity_before, "lifetime_quantity_before"),
        )
        object.__setattr__(self, "unit_price", to_decimal(self.unit_price, "unit_price"))
        if self.units_sold < 0 or self.units_returned < 0:
            raise InvalidEngineInput(f"{self.format.value}: unit counts cannot be negative")
        if self.lifetime_quantity_before < 0:
            raise InvalidEngineInput(f"{self.format.value}: lifetime quantity cannot be negative")

    @property
    def net_units(self) -> Quantity:
        return self.units_sold - self.units_returned


@dataclass(frozen=True)
class PeriodRoyalty:
    """Royalty for a period across formats, after recoupment."""

    mode: TierCalculationMode
    sales: Tuple[FormatSales, ...]
    allocations: Dict[SalesFormat, AllocationResult] = field(hash=False)
    total_royalty: Decimal
    recoupment: RecoupmentResult

    @property
    def payable_amount(self) -> Decimal:
        return self.recoupment.payable_amount

    @property
    def advance_balance(self) -> AdvanceBalance:
        return self.recoupment.balance

    def ending_positions(self) -> Dict[SalesFormat, Quantity]:
        """Lifetime cumulative quantity per format after this period."""
        positions = {}
        for line in self.sales:
            if self.mode is TierCalculationMode.LIFETIME:
                positions[line.format] = self.allocations[line.format].ending_quantity
            else:
                positions[line.format] = max(line.lifetime_quantity_before + line.net_units, 0)
        return positions


def calculate_period_royalty(
    schedules: Mapping[Union[SalesFormat, str], Sequence[RoyaltyTier]],
    sales: Sequence[FormatSales],
    advance: AdvanceBalance,
    mode: TierCalculationMode = TierCalculationMode.LIFETIME,
) -> PeriodRoyalty:
    """
    Calculate a period's royalty for one contract.

    LIFETIME mode positions each format at its lifetime quantity before the
    period, so sales escalate through the remaining tier capacity and net
    returns walk back down. PERIOD mode restarts tiers at zero each period
    and caps net units at zero.

    Args:
        schedules: Tier schedule per format
        sales: One FormatSales per format with activity in the period
        advance: Contract advance balance before the period
        mode: Tier positioning mode

    Returns:
        PeriodRoyalty with per-format allocations and recoupment

    Raises:
        InvalidTierSchedule: a format has sales but no schedule
        InvalidEngineInput: a format appears twice in ``sales``
    """
    by_format = {SalesFormat.parse(fmt): tiers for fmt, tiers in schedules.items()}
    allocations: Dict[SalesFormat, AllocationResult] = {}

    for line in sales:
        if line.format in allocations:
            raise InvalidEngineInput(f"{line.format.value} appears more than once in period sales")

        tiers = by_format.get(line.format)
        if not tiers:
            raise InvalidTierSchedule("no tier schedule configured for format with sales", line.format.value)

        lifetime = mode is TierCalculationMode.LIFETIME
        net = calculate_net_sales(
            gross_quantity=line.units_sold,
            returns_quantity=line.units_returned,
            allow_negative=lifetime,
        )
        if net.has_net_returns:
            logger.warning(
                "%s: returns exceed sales by %s units this period",
                line.format.value,
                -line.net_units,
            )

        start = line.lifetime_quantity_before if lifetime else 0
        allocations[line.format] = allocate(tiers, start, net.net_quantity, line.unit_price)

    with exact_arithmetic():
        total_royalty = sum((a.total_royalty for a in allocations.values()), ZERO)

    return PeriodRoyalty(
        mode=mode,
        sales=tuple(sales),
        allocations=allocations,
        total_royalty=total_royalty,
        recoupment=apply_recoupment(advance, total_royalty),
    )
