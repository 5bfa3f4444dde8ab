"""Tests for net sales after returns."""

from decimal import Decimal

import pytest

from royalty_engine.calculator import calculate_net_sales
from royalty_engine.errors import InvalidEngineInput


class TestNetSales:

    def test_gross_less_returns(self):
        net = calculate_net_sales(1000, "19990.00", 50, "999.50")
        assert net.net_quantity == 950
        assert net.net_revenue == Decimal("18990.50")
        assert not net.has_net_returns

    def test_no_returns(self):
        net = calculate_net_sales(gross_quantity=10, gross_revenue="100")
        assert net.net_quantity == 10
        assert net.net_revenue == Decimal("100")

    def test_capped_at_zero(self):
        net = calculate_net_sales(10, "100", 25, "250")
        assert net.net_quantity == 0
        assert net.net_revenue == 0
        assert net.has_net_returns

    def test_negative_allowed_for_lifetime(self):
        net = calculate_net_sales(10, "100", 25, "250", allow_negative=True)
        assert net.net_quantity == -15
        assert net.net_revenue == Decimal("-150")

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"gross_quantity": -1},
            {"returns_quantity": -1},
            {"gross_revenue": "-0.01"},
            {"returns_amount": "-5"},
        ],
    )
    def test_negative_inputs(self, kwargs):
        with pytest.raises(InvalidEngineInput):
            calculate_net_sales(**kwargs)

    def test_float_revenue(self):
        with pytest.raises(InvalidEngineInput):
            calculate_net_sales(1, 9.99)
