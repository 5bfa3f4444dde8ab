"""Shared fixtures: sample tier schedules and prices."""

from decimal import Decimal

import pytest

from royalty_engine.models import RateKind, RoyaltyTier, SalesFormat
from royalty_engine.schedule import TierSchedule


@pytest.fixture
def physical_tiers():
    """0-50,000 @ 10%, 50,000-100,000 @ 12%, 100,000+ @ 15%."""
    return TierSchedule(
        [
            RoyaltyTier(SalesFormat.PHYSICAL, 0, 50000, Decimal("0.10")),
            RoyaltyTier(SalesFormat.PHYSICAL, 50000, 100000, Decimal("0.12")),
            RoyaltyTier(SalesFormat.PHYSICAL, 100000, None, Decimal("0.15")),
        ]
    )


@pytest.fixture
def ebook_tiers():
    """0-10,000 @ 25%, 10,000+ @ 30%."""
    return TierSchedule(
        [
            RoyaltyTier(SalesFormat.EBOOK, 0, 10000, Decimal("0.25")),
            RoyaltyTier(SalesFormat.EBOOK, 10000, None, Decimal("0.30")),
        ]
    )


@pytest.fixture
def audiobook_per_unit_tiers():
    """0-1,000 @ $0.50 per unit, 1,000+ @ $0.75 per unit."""
    return TierSchedule(
        [
            RoyaltyTier(SalesFormat.AUDIOBOOK, 0, 1000, Decimal("0.50"), RateKind.PER_UNIT),
            RoyaltyTier(SalesFormat.AUDIOBOOK, 1000, None, Decimal("0.75"), RateKind.PER_UNIT),
        ]
    )


@pytest.fixture
def unit_price():
    return Decimal("20")
