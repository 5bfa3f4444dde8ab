"""
Royalty projection from recent sales velocity.

Answers two questions for a title/format position:

1. TIER CROSSOVER: how many units and months until the next tier starts,
   at the current monthly velocity.
2. FORWARD ROYALTY: royalty over the horizon (12 months by default) priced
   two ways:
   - flat: every projected unit at the current tier's rate (naive baseline)
   - escalating: the projected units run through the allocator from the
     current position, so any crossover inside the window is split at the
     true rate for each slice.

The escalating figure always comes from ``allocate``; tier-walking is not
duplicated here.
"""

from typing import Optional, Sequence, Union

from ..config import settings
from ..errors import InvalidEngineInput
from ..models import ProjectionResult, RoyaltyTier
from ..money import (
    DecimalInput,
    Quantity,
    ceil_divide,
    check_scale,
    exact_arithmetic,
    to_decimal,
    to_quantity,
)
from ..schedule.lookup import find_tier_index
from ..calculator.allocator import allocate


def resolve_horizon(horizon_months: Optional[int]) -> int:
    """Explicit horizon or the configured default, validated."""
    horizon = settings.projection.horizon_months if horizon_months is None else horizon_months
    if isinstance(horizon, bool) or not isinstance(horizon, int) or horizon <= 0:
        raise InvalidEngineInput(f"horizon_months must be a positive int, got {horizon!r}")
    return horizon


def resolve_velocity(units_per_month: Union[Quantity, str]) -> Quantity:
    """Monthly velocity as a non-negative quantity."""
    velocity = to_quantity(units_per_month, "units_per_month")
    if velocity < 0:
        raise InvalidEngineInput(f"units_per_month cannot be negative, got {velocity}")
    return velocity


def project(
    tiers: Sequence[RoyaltyTier],
    current_quantity: Union[Quantity, str],
    avg_unit_price: DecimalInput,
    units_per_month: Union[Quantity, str],
    horizon_months: Optional[int] = None,
) -> ProjectionResult:
    """
    Project tier crossover and forward royalty.

    Args:
        tiers: Validated tier schedule for one format
        current_quantity: Cumulative lifetime units sold to date
        avg_unit_price: Average revenue per unit
        units_per_month: Recent sales velocity (int or Decimal average)
        horizon_months: Projection window; defaults to settings (12)

    Returns:
        ProjectionResult; zero velocity yields zero projected figures
    """
    horizon = resolve_horizon(horizon_months)
    current = to_quantity(current_quantity, "current_quantity")
    velocity = resolve_velocity(units_per_month)
    price = check_scale(
        to_decimal(avg_unit_price, "avg_unit_price"), settings.precision.price_places, "avg_unit_price"
    )

    index = find_tier_index(tiers, current)
    current_tier = tiers[index]
    following = tiers[index + 1] if index + 1 < len(tiers) else None

    next_threshold = None
    units_to_next = None
    months_to_next = None
    if following is not None:
        next_threshold = following.min_quantity
        units_to_next = max(0, next_threshold - current)
        if velocity > 0:
            months_to_next = ceil_divide(units_to_next, velocity)

    with exact_arithmetic():
        projected_units = velocity * horizon
        projected_revenue = projected_units * price
        royalty_flat = current_tier.royalty_for(projected_units, price)

    allocation = allocate(tiers, current, projected_units, price)

    with exact_arithmetic():
        escalation_benefit = allocation.total_royalty - royalty_flat

    return ProjectionResult(
        current_tier=current_tier,
        next_tier_threshold=next_threshold,
        units_to_next_tier=units_to_next,
        months_to_next_tier=months_to_next,
        projected_annual_units=projected_units,
        projected_annual_revenue=projected_revenue,
        royalty_at_current_rate=royalty_flat,
        royalty_with_escalation=allocation.total_royalty,
        escalation_benefit=escalation_benefit,
        would_crossover_in_year=allocation.crossed_tier,
        horizon_months=horizon,
        allocation=allocation,
    )
