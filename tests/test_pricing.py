"""
Unit tests for line-item pricing and the thousand rounding rule.
"""
from decimal import Decimal

import pytest

from pos_api.pricing.schemas import PricingType
from pos_api.pricing.services import (
    compute_cost_total,
    compute_item_total,
    display_unit_price,
    is_complete,
    round_to_nearest_thousand,
)


class TestRoundToNearestThousand:

    @pytest.mark.parametrize("amount, expected", [
        (0, 0),
        (1000, 1000),
        (5000000, 5000000),
        (1, 1000),
        (1001, 2000),
        (33300, 34000),
        (33700, 34000),
        (999.99, 1000),
        (1039.5, 2000),
    ])
    def test_rounds_up_to_next_multiple(self, amount, expected):
        assert round_to_nearest_thousand(amount) == Decimal(expected)

    def test_result_is_never_below_input(self):
        for amount in (0.01, 499, 500, 1500.5, 123456):
            rounded = round_to_nearest_thousand(amount)
            assert rounded >= Decimal(str(amount))
            assert rounded % 1000 == 0


class TestComputeItemTotal:

    def test_quantity_product(self):
        line = compute_item_total(PricingType.QUANTITY, 15000, 3)

        assert line.complete is True
        assert line.itemTotal == 45000
        assert line.area is None

    def test_quantity_product_is_not_rounded(self):
        line = compute_item_total("quantity", 1250, 3)

        assert line.itemTotal == 3750

    def test_size_product_already_multiple(self):
        line = compute_item_total(PricingType.SIZE, 500, 2, width=100, height=50)

        assert line.area == 5000
        assert line.rawTotal == 5000000
        assert line.itemTotal == 5000000

    def test_size_product_rounds_up(self):
        line = compute_item_total(PricingType.SIZE, 337, 1, width=10, height=10)

        assert line.rawTotal == 33700
        assert line.itemTotal == 34000

    def test_size_product_with_fractional_dimensions(self):
        line = compute_item_total(PricingType.SIZE, 1.5, 1, width=33, height=21)

        assert line.area == 693
        assert line.rawTotal == pytest.approx(1039.5)
        assert line.itemTotal == 2000

    def test_quantity_multiplies_size_products(self):
        single = compute_item_total(PricingType.SIZE, 337, 1, width=10, height=10)
        triple = compute_item_total(PricingType.SIZE, 337, 3, width=10, height=10)

        assert triple.rawTotal == single.rawTotal * 3
        assert triple.itemTotal == 102000

    def test_zero_quantity_is_incomplete(self):
        line = compute_item_total(PricingType.QUANTITY, 15000, 0)

        assert line.complete is False
        assert line.itemTotal == 0

    @pytest.mark.parametrize("quantity", [None, -1, 1.5, True])
    def test_invalid_quantity_is_incomplete(self, quantity):
        line = compute_item_total(PricingType.QUANTITY, 15000, quantity)

        assert line.complete is False
        assert line.itemTotal == 0

    @pytest.mark.parametrize("width, height", [(None, 50), (100, None), (0, 50), (100, -2)])
    def test_size_without_dimensions_is_incomplete(self, width, height):
        line = compute_item_total(PricingType.SIZE, 500, 1, width=width, height=height)

        assert line.complete is False
        assert line.itemTotal == 0

    def test_quantity_product_ignores_dimensions(self):
        assert is_complete(PricingType.QUANTITY, 2, None, None) is True

    @pytest.mark.parametrize("width, height", [
        (float("inf"), 10), (10, float("-inf")), (float("nan"), 10), (Decimal("Infinity"), 10)
    ])
    def test_non_finite_dimensions_are_incomplete(self, width, height):
        line = compute_item_total(PricingType.SIZE, 500, 1, width=width, height=height)

        assert line.complete is False
        assert line.itemTotal == 0

    @pytest.mark.parametrize("quantity", [float("inf"), float("nan")])
    def test_non_finite_quantity_is_incomplete(self, quantity):
        line = compute_item_total(PricingType.QUANTITY, 15000, quantity)

        assert line.complete is False
        assert line.itemTotal == 0

    @pytest.mark.parametrize("pricing_type", [PricingType.QUANTITY, PricingType.SIZE])
    def test_non_finite_rate_is_incomplete(self, pricing_type):
        line = compute_item_total(pricing_type, float("inf"), 1, width=10, height=10)

        assert line.complete is False
        assert line.itemTotal == 0


class TestCostAndDisplay:

    def test_missing_cost_price_costs_nothing(self):
        assert compute_cost_total(PricingType.QUANTITY, None, 4) == 0
        assert compute_cost_total(PricingType.SIZE, None, 1, 100, 100) == 0

    def test_size_cost_uses_the_same_rounding(self):
        assert compute_cost_total(PricingType.SIZE, 1.5, 1, 33, 21) == 2000

    def test_display_unit_price_spreads_total(self):
        assert display_unit_price(102000, 3) == 34000

    @pytest.mark.parametrize("quantity", [0, None, -4])
    def test_display_unit_price_normalizes_quantity(self, quantity):
        assert display_unit_price(34000, quantity) == 34000
