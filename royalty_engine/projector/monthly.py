"""
Month-by-month projection schedule.

Steps a position forward one month at a time at constant velocity. Each
month is one allocator call followed by one recoupment call, so the monthly
royalties sum exactly to the escalating figure from ``project`` over the
same horizon.

``crossed_tier`` marks a month whose closing position sits in a higher tier
than its opening position, including a month that lands exactly on a
boundary.
"""

import logging
from typing import Any, Dict, Optional, Sequence, Union

import pandas as pd

from ..models import AdvanceBalance, RoyaltyTier
from ..money import ZERO, DecimalInput, Quantity, exact_arithmetic, to_quantity
from ..schedule.lookup import find_tier
from ..calculator.allocator import allocate
from ..calculator.recoupment import apply_recoupment
from .projection import resolve_horizon, resolve_velocity

logger = logging.getLogger(__name__)

MONTHLY_COLUMNS = [
    "month",
    "units",
    "cumulative_quantity",
    "tier_min",
    "tier_rate",
    "crossed_tier",
    "royalty",
    "cumulative_royalty",
    "recouped",
    "payable",
    "advance_remaining",
]


def build_monthly_projection(
    tiers: Sequence[RoyaltyTier],
    current_quantity: Union[Quantity, str],
    avg_unit_price: DecimalInput,
    units_per_month: Union[Quantity, str],
    months: Optional[int] = None,
    advance: Optional[AdvanceBalance] = None,
) -> pd.DataFrame:
    """
    Build the month-by-month projection.

    Args:
        tiers: Validated tier schedule for one format
        current_quantity: Cumulative lifetime units sold to date
        avg_unit_price: Average revenue per unit
        units_per_month: Constant monthly velocity
        months: Number of months; defaults to the projection horizon
        advance: Advance balance to recoup against (None = no advance)

    Returns:
        DataFrame with month, units, cumulative_quantity, tier_min,
        tier_rate, crossed_tier, royalty, cumulative_royalty, recouped,
        payable and advance_remaining columns
    """
    months = resolve_horizon(months)
    velocity = resolve_velocity(units_per_month)
    position = to_quantity(current_quantity, "current_quantity")
    balance = advance if advance is not None else AdvanceBalance.new(0)

    rows = []
    cumulative_royalty = ZERO

    for month in range(1, months + 1):
        month_start_tier = find_tier(tiers, position)
        allocation = allocate(tiers, position, velocity, avg_unit_price)
        recoupment = apply_recoupment(balance, allocation.total_royalty)
        month_end_tier = find_tier(tiers, allocation.ending_quantity)
        crossed = month_end_tier != month_start_tier

        with exact_arithmetic():
            cumulative_royalty += allocation.total_royalty

        rows.append(
            {
                "month": month,
                "units": allocation.delta,
                "cumulative_quantity": allocation.ending_quantity,
                "tier_min": month_end_tier.min_quantity,
                "tier_rate": month_end_tier.rate,
                "crossed_tier": crossed,
                "royalty": allocation.total_royalty,
                "cumulative_royalty": cumulative_royalty,
                "recouped": recoupment.recouped_amount,
                "payable": recoupment.payable_amount,
                "advance_remaining": recoupment.balance.remaining_balance,
            }
        )

        if crossed:
            logger.debug("Projected tier crossover in month %d at %s units", month, allocation.ending_quantity)

        position = allocation.ending_quantity
        balance = recoupment.balance

    return pd.DataFrame(rows, columns=MONTHLY_COLUMNS)


def summarize_monthly_projection(projection_df: pd.DataFrame) -> Dict[str, Any]:
    """
    Generate summary statistics for a monthly projection.

    Args:
        projection_df: DataFrame from build_monthly_projection

    Returns:
        Dictionary with totals, first crossover month and earn-out month
    """
    crossovers = projection_df[projection_df["crossed_tier"].astype(bool)]
    first_crossover = int(crossovers["month"].min()) if not crossovers.empty else None

    earned_out = projection_df[
        (projection_df["recouped"] > 0) & (projection_df["advance_remaining"] == 0)
    ]
    earn_out_month = int(earned_out["month"].min()) if not earned_out.empty else None

    final_balance = projection_df["advance_remaining"].iloc[-1] if len(projection_df) else None

    return {
        "months": len(projection_df),
        "total_units": sum(projection_df["units"], 0),
        "total_royalty": sum(projection_df["royalty"], ZERO),
        "total_payable": sum(projection_df["payable"], ZERO),
        "first_crossover_month": first_crossover,
        "earn_out_month": earn_out_month,
        "final_advance_balance": final_balance,
    }
