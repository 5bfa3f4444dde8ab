"""Tier lookup by cumulative lifetime quantity."""

from typing import Optional, Sequence, Union

from ..errors import InvalidEngineInput, TierScheduleExhausted
from ..models import RoyaltyTier
from ..money import Quantity, to_quantity


def find_tier_index(tiers: Sequence[RoyaltyTier], quantity: Union[Quantity, str]) -> int:
    """
    Position of the tier containing ``quantity``.

    Boundaries are half-open [min, max): a quantity equal to a tier's max
    belongs to the next tier.

    Raises:
        InvalidEngineInput: quantity is negative or not a number
        TierScheduleExhausted: no tier covers the quantity
    """
    quantity = to_quantity(quantity)
    if quantity < 0:
        raise InvalidEngineInput(f"Cumulative quantity cannot be negative, got {quantity}")

    for index, tier in enumerate(tiers):
        if tier.contains(quantity):
            return index

    raise TierScheduleExhausted(quantity)


def find_tier(tiers: Sequence[RoyaltyTier], quantity: Union[Quantity, str]) -> RoyaltyTier:
    """Tier that ``quantity`` falls in."""
    return tiers[find_tier_index(tiers, quantity)]


def next_tier(tiers: Sequence[RoyaltyTier], tier: RoyaltyTier) -> Optional[RoyaltyTier]:
    """Tier following ``tier``, or None if it is the top tier."""
    for index, candidate in enumerate(tiers):
        if candidate == tier:
            return tiers[index + 1] if index + 1 < len(tiers) else None
    raise InvalidEngineInput(f"Tier {tier} is not part of this schedule")
