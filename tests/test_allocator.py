"""Tests for the piecewise tier allocator."""

import logging
from decimal import Decimal

import pytest

from royalty_engine.calculator import allocate
from royalty_engine.errors import (
    InvalidEngineInput,
    NegativeCumulativeQuantity,
    PrecisionLossDetected,
    TierScheduleExhausted,
)
from royalty_engine.models import RoyaltyTier, SalesFormat


class TestSales:

    def test_within_one_tier(self, physical_tiers, unit_price):
        result = allocate(physical_tiers, 10000, 5000, unit_price)
        assert result.tier_count == 1
        assert result.total_royalty == Decimal("10000")
        assert result.ending_quantity == 15000
        assert not result.crossed_tier

    def test_crossing_one_boundary(self, physical_tiers, unit_price):
        result = allocate(physical_tiers, 45000, 12000, unit_price)
        assert [s.units for s in result.breakdown] == [5000, 7000]
        assert [s.royalty for s in result.breakdown] == [Decimal("10000"), Decimal("16800")]
        assert result.total_royalty == Decimal("26800")
        assert result.total_revenue == Decimal("240000")
        assert result.crossed_tier

    def test_spanning_every_tier(self, physical_tiers, unit_price):
        result = allocate(physical_tiers, 0, 150000, unit_price)
        assert [s.units for s in result.breakdown] == [50000, 50000, 50000]
        assert result.total_royalty == Decimal("370000")
        assert result.ending_quantity == 150000

    def test_starting_on_boundary(self, physical_tiers, unit_price):
        result = allocate(physical_tiers, 50000, 100, unit_price)
        assert result.tier_count == 1
        assert result.breakdown[0].tier.rate == Decimal("0.12")

    def test_ending_on_boundary(self, physical_tiers, unit_price):
        result = allocate(physical_tiers, 49000, 1000, unit_price)
        assert result.tier_count == 1
        assert result.breakdown[0].tier.rate == Decimal("0.10")
        assert result.ending_quantity == 50000

    def test_total_is_sum_of_slices(self, physical_tiers):
        result = allocate(physical_tiers, 12345, 123456, "17.99")
        assert result.total_royalty == sum(s.royalty for s in result.breakdown)
        assert sum(s.units for s in result.breakdown) == 123456

    def test_split_batch_matches_single_batch(self, physical_tiers, unit_price):
        whole = allocate(physical_tiers, 40000, 70000, unit_price)
        first = allocate(physical_tiers, 40000, 30000, unit_price)
        second = allocate(physical_tiers, first.ending_quantity, 40000, unit_price)
        assert whole.total_royalty == first.total_royalty + second.total_royalty

    def test_per_unit_rates(self, audiobook_per_unit_tiers):
        result = allocate(audiobook_per_unit_tiers, 900, 200, "35.00")
        assert [s.royalty for s in result.breakdown] == [Decimal("50"), Decimal("75")]
        assert result.total_royalty == Decimal("125")

    def test_fractional_cents_kept(self, ebook_tiers):
        result = allocate(ebook_tiers, 0, 1, "9.99")
        assert result.total_royalty == Decimal("2.4975")

    @pytest.mark.parametrize(
        "start, delta, rate",
        [
            (0, 1, "0.10"),
            (0, 49999, "0.10"),
            (12345, 20000, "0.10"),
            (49000, 1000, "0.10"),
            (50000, 1, "0.12"),
            (60000, 39999, "0.12"),
            (100000, 250000, "0.15"),
        ],
    )
    def test_single_tier_batch_matches_flat_rate(self, physical_tiers, start, delta, rate):
        price = Decimal("17.99")
        result = allocate(physical_tiers, start, delta, price)
        assert result.tier_count == 1
        assert result.total_royalty == delta * price * Decimal(rate)

    def test_repeated_calls_are_equal(self, physical_tiers, unit_price):
        first = allocate(physical_tiers, 45000, 12000, unit_price)
        second = allocate(physical_tiers, 45000, 12000, unit_price)
        assert first == second
        assert first.breakdown == second.breakdown


class TestReturns:

    def test_returns_walk_down(self, physical_tiers, unit_price):
        result = allocate(physical_tiers, 52000, -5000, unit_price)
        assert [s.units for s in result.breakdown] == [-3000, -2000]
        assert [s.tier.rate for s in result.breakdown] == [Decimal("0.10"), Decimal("0.12")]
        assert result.total_royalty == Decimal("-10800")
        assert result.ending_quantity == 47000
        assert not result.was_clamped

    def test_return_reverses_sale(self, physical_tiers, unit_price):
        sale = allocate(physical_tiers, 45000, 12000, unit_price)
        refund = allocate(physical_tiers, sale.ending_quantity, -12000, unit_price)
        assert refund.total_royalty == -sale.total_royalty
        assert refund.ending_quantity == 45000

    def test_return_from_boundary(self, physical_tiers, unit_price):
        result = allocate(physical_tiers, 50000, -10, unit_price)
        assert result.tier_count == 1
        assert result.breakdown[0].tier.rate == Decimal("0.10")

    def test_clamped_at_zero(self, physical_tiers, caplog):
        with caplog.at_level(logging.WARNING, logger="royalty_engine.calculator.allocator"):
            result = allocate(physical_tiers, 100, -150, "20")
        assert result.was_clamped
        assert result.delta == -100
        assert result.requested_delta == -150
        assert result.ending_quantity == 0
        assert result.total_royalty == Decimal("-200")
        assert isinstance(result.clamp, NegativeCumulativeQuantity)
        assert result.clamp.excess_units == 50
        assert "clamping at zero" in caplog.text

    def test_clamp_from_zero(self, physical_tiers, unit_price):
        result = allocate(physical_tiers, 0, -10, unit_price)
        assert result.breakdown == ()
        assert result.total_royalty == 0
        assert result.was_clamped


class TestEdgeCases:

    def test_zero_delta(self, physical_tiers, unit_price):
        result = allocate(physical_tiers, 45000, 0, unit_price)
        assert result.breakdown == ()
        assert result.total_royalty == 0
        assert result.ending_quantity == 45000

    def test_zero_price(self, physical_tiers):
        result = allocate(physical_tiers, 0, 100, 0)
        assert result.total_royalty == 0

    def test_negative_start(self, physical_tiers, unit_price):
        with pytest.raises(InvalidEngineInput):
            allocate(physical_tiers, -1, 10, unit_price)

    def test_negative_price(self, physical_tiers):
        with pytest.raises(InvalidEngineInput):
            allocate(physical_tiers, 0, 10, "-1.00")

    def test_float_price(self, physical_tiers):
        with pytest.raises(InvalidEngineInput):
            allocate(physical_tiers, 0, 10, 19.99)

    def test_price_precision(self, physical_tiers):
        with pytest.raises(PrecisionLossDetected):
            allocate(physical_tiers, 0, 10, "19.99999")

    def test_overflowing_result(self, physical_tiers):
        with pytest.raises(PrecisionLossDetected):
            allocate(physical_tiers, 0, 10**30 + 1, "1234.5678")

    def test_uncovered_batch(self):
        tiers = [RoyaltyTier(SalesFormat.PHYSICAL, 0, 100, Decimal("0.10"))]
        with pytest.raises(TierScheduleExhausted):
            allocate(tiers, 50, 100, "10")

    def test_sale_across_gap_in_raw_tiers(self):
        tiers = [
            RoyaltyTier(SalesFormat.PHYSICAL, 0, 100, Decimal("0.10")),
            RoyaltyTier(SalesFormat.PHYSICAL, 200, None, Decimal("0.20")),
        ]
        with pytest.raises(TierScheduleExhausted) as exc_info:
            allocate(tiers, 50, 200, "10")
        assert exc_info.value.quantity == 100

    def test_return_across_gap_in_raw_tiers(self):
        tiers = [
            RoyaltyTier(SalesFormat.PHYSICAL, 0, 100, Decimal("0.10")),
            RoyaltyTier(SalesFormat.PHYSICAL, 200, None, Decimal("0.20")),
        ]
        with pytest.raises(TierScheduleExhausted) as exc_info:
            allocate(tiers, 250, -200, "10")
        assert exc_info.value.quantity == 100
