"""
Royalty allocator: splits a batch of sales (or returns) across rate tiers.

The batch occupies the cumulative range [start, start + delta). Each tier
gets the units of that range that fall inside it, and each slice earns
royalty at its own tier's rate:

- percentage tiers: units x unit_price x rate
- per-unit tiers:   units x rate

The total is always the sum of the slices. A batch that crosses a tier
boundary is never priced at a single rate.

Returns (negative delta) walk the tiers downward over [start + delta, start)
and produce negative slices. Cumulative quantity is clamped at zero; the
clamp is reported on the result, not raised.
"""

import logging
from typing import List, Sequence, Union

from ..config import settings
from ..errors import InvalidEngineInput, NegativeCumulativeQuantity, TierScheduleExhausted
from ..models import AllocationResult, RoyaltyTier, TierAllocation
from ..money import (
    ZERO,
    DecimalInput,
    Quantity,
    check_scale,
    exact_arithmetic,
    to_decimal,
    to_quantity,
)
from ..schedule.lookup import find_tier_index

logger = logging.getLogger(__name__)


def _slice(tier: RoyaltyTier, units: Quantity, unit_price) -> TierAllocation:
    return TierAllocation(
        tier=tier,
        units=units,
        revenue=units * unit_price,
        royalty=tier.royalty_for(units, unit_price),
    )


def _walk_up(
    tiers: Sequence[RoyaltyTier], start: Quantity, units: Quantity, unit_price
) -> List[TierAllocation]:
    """Consume ``units`` upward from ``start``."""
    index = find_tier_index(tiers, start)
    position = start
    remaining = units
    slices: List[TierAllocation] = []

    for tier in tiers[index:]:
        if tier.min_quantity > position:
            # Gap between the previous tier's end and this tier's start
            raise TierScheduleExhausted(position)
        if tier.is_unbounded:
            # Top tier absorbs whatever is left
            taken = remaining
        else:
            taken = min(remaining, tier.max_quantity - position)
        slices.append(_slice(tier, taken, unit_price))
        position += taken
        remaining -= taken
        if remaining == 0:
            break

    if remaining:
        raise TierScheduleExhausted(position)
    return slices


def _walk_down(
    tiers: Sequence[RoyaltyTier], start: Quantity, units: Quantity, unit_price
) -> List[TierAllocation]:
    """Remove ``units`` (a positive count) downward from ``start``."""
    find_tier_index(tiers, start)
    position = start
    remaining = units
    slices: List[TierAllocation] = []

    for tier in reversed(tuple(tiers)):
        if remaining == 0:
            break
        if tier.min_quantity >= position:
            continue
        if tier.max_quantity is not None and tier.max_quantity < position:
            raise TierScheduleExhausted(tier.max_quantity)
        taken = min(remaining, position - tier.min_quantity)
        slices.append(_slice(tier, -taken, unit_price))
        position -= taken
        remaining -= taken

    if remaining:
        raise TierScheduleExhausted(position)
    slices.reverse()
    return slices


def allocate(
    tiers: Sequence[RoyaltyTier],
    start_quantity: Union[Quantity, str],
    delta: Union[Quantity, str],
    unit_price: DecimalInput,
) -> AllocationResult:
    """
    Allocate a batch of units across tiers and sum the royalty owed.

    Args:
        tiers: Validated tier schedule for one format
        start_quantity: Cumulative lifetime units before this batch
        delta: Units in the batch (negative for returns)
        unit_price: Revenue per unit (ignored by per-unit tiers)

    Returns:
        AllocationResult with per-tier breakdown in ascending tier order

    Raises:
        InvalidEngineInput: negative start, negative price, or float input
        TierScheduleExhausted: the schedule does not cover the batch
        PrecisionLossDetected: a slice cannot be computed exactly
    """
    start = to_quantity(start_quantity, "start_quantity")
    requested = to_quantity(delta, "delta")
    price = check_scale(
        to_decimal(unit_price, "unit_price"), settings.precision.price_places, "unit_price"
    )

    if start < 0:
        raise InvalidEngineInput(f"start_quantity cannot be negative, got {start}")
    if price < 0:
        raise InvalidEngineInput(f"unit_price cannot be negative, got {price}")

    if requested == 0:
        return AllocationResult(
            starting_quantity=start,
            requested_delta=requested,
            delta=0,
            ending_quantity=start,
            unit_price=price,
            breakdown=(),
            total_royalty=ZERO,
        )

    applied = requested
    clamp = None
    if start + requested < 0:
        applied = -start
        clamp = NegativeCumulativeQuantity(start, requested, applied)
        logger.warning(
            "Return of %s units exceeds cumulative quantity %s; clamping at zero (%s excess units)",
            -requested,
            start,
            clamp.excess_units,
        )

    with exact_arithmetic():
        if applied > 0:
            slices = _walk_up(tiers, start, applied, price)
        elif applied < 0:
            slices = _walk_down(tiers, start, -applied, price)
        else:
            slices = []
        total_royalty = sum((s.royalty for s in slices), ZERO)
        ending = start + applied

    if len(slices) > 1:
        logger.debug(
            "Batch of %s units from %s crossed %d tiers (royalty %s)",
            applied,
            start,
            len(slices),
            total_royalty,
        )

    return AllocationResult(
        starting_quantity=start,
        requested_delta=requested,
        delta=applied,
        ending_quantity=ending,
        unit_price=price,
        breakdown=tuple(slices),
        total_royalty=total_royalty,
        clamp=clamp,
    )
