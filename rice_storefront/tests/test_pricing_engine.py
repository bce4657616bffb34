"""
Tests: tiered pricing engine.

Run with:
    pytest rice_storefront/tests/test_pricing_engine.py -v
"""

import pytest

from rice_storefront.models.enums import TierLabel
from rice_storefront.models.schemas import Product
from rice_storefront.pricing import (
    build_price_tiers,
    calculate_item_total,
    calculate_savings,
    calculate_subtotal,
    price_line,
    resolve_tier_price,
    round_currency,
    round_half_up,
)


def _ladder_product(**overrides) -> Product:
    data = dict(
        id="basmati",
        name="Super Kernel Basmati",
        base_price_per_kg=200,
        has_tier_pricing=True,
        tier_2_4kg_price=190,
        tier_5_9kg_price=180,
        tier_10kg_up_price=170,
    )
    data.update(overrides)
    return Product(**data)


class TestResolveTierPrice:
    @pytest.mark.parametrize(
        "qty, price, tier",
        [
            (1, 200, TierLabel.BASE),
            (3, 190, TierLabel.TIER_2_4KG),
            (7, 180, TierLabel.TIER_5_9KG),
            (12, 170, TierLabel.TIER_10KG_UP),
        ],
    )
    def test_full_ladder(self, qty, price, tier):
        result = resolve_tier_price(_ladder_product(), qty)
        assert result.price_per_kg == price
        assert result.tier_applied == tier

    def test_threshold_boundaries_are_inclusive(self):
        product = _ladder_product()
        assert resolve_tier_price(product, 2).tier_applied == TierLabel.TIER_2_4KG
        assert resolve_tier_price(product, 5).tier_applied == TierLabel.TIER_5_9KG
        assert resolve_tier_price(product, 10).tier_applied == TierLabel.TIER_10KG_UP
        assert resolve_tier_price(product, 1.99).tier_applied == TierLabel.BASE

    def test_tier_pricing_disabled_uses_base(self):
        product = _ladder_product(has_tier_pricing=False)
        result = resolve_tier_price(product, 15)
        assert result.price_per_kg == 200
        assert result.tier_applied == TierLabel.BASE

    def test_missing_middle_tier_falls_back_to_base(self):
        product = _ladder_product(tier_5_9kg_price=None, tier_2_4kg_price=None)
        result = resolve_tier_price(product, 6)
        assert result.price_per_kg == 200
        assert result.tier_applied == TierLabel.BASE

    def test_only_top_tier_configured(self):
        product = Product(
            id="sella", name="Golden Sella", base_price_per_kg=300,
            has_tier_pricing=True, tier_10kg_up_price=260,
        )
        result = resolve_tier_price(product, 6)
        assert result.price_per_kg == 300
        assert result.tier_applied == TierLabel.BASE
        assert resolve_tier_price(product, 10).price_per_kg == 260

    def test_missing_tier_falls_to_next_lower_tier(self):
        product = _ladder_product(tier_5_9kg_price=None)
        result = resolve_tier_price(product, 6)
        assert result.price_per_kg == 190
        assert result.tier_applied == TierLabel.TIER_2_4KG

    @pytest.mark.parametrize("bad_price", [0, -5, None])
    def test_unusable_top_tier_is_skipped(self, bad_price):
        product = _ladder_product(tier_10kg_up_price=bad_price)
        result = resolve_tier_price(product, 12)
        assert result.price_per_kg == 180
        assert result.tier_applied == TierLabel.TIER_5_9KG

    def test_never_raises_on_odd_input(self):
        product = _ladder_product()
        assert resolve_tier_price(product, 0).tier_applied == TierLabel.BASE
        assert resolve_tier_price(product, -3).tier_applied == TierLabel.BASE

    def test_price_per_kg_never_increases_with_quantity(self):
        product = _ladder_product()
        quantities = [0.5, 1, 2, 3, 4.5, 5, 8, 9.9, 10, 25, 500]
        prices = [resolve_tier_price(product, q).price_per_kg for q in quantities]
        assert prices == sorted(prices, reverse=True)


class TestSubtotalAndSavings:
    def test_no_tier_product(self):
        product = Product(id="p", name="Sella", base_price_per_kg=200)
        assert calculate_subtotal(product, 15) == 3000
        savings = calculate_savings(product, 15)
        assert savings.savings == 0
        assert savings.savings_percentage == 0
        assert savings.tier_applied is None

    def test_tier_savings(self):
        savings = calculate_savings(_ladder_product(), 12)
        assert savings.original_price == 2400
        assert savings.discounted_price == 2040
        assert savings.savings == 360
        assert savings.savings_percentage == pytest.approx(15.0)
        assert savings.tier_applied == TierLabel.TIER_10KG_UP

    def test_zero_base_price_does_not_divide_by_zero(self):
        product = Product(id="p", name="Free sample", base_price_per_kg=0)
        savings = calculate_savings(product, 5)
        assert savings.savings_percentage == 0

    def test_savings_never_negative_for_sane_ladder(self):
        product = _ladder_product()
        for qty in (1, 2, 4, 5, 9, 10, 40):
            assert calculate_savings(product, qty).savings >= 0


class TestItemTotal:
    def test_loyalty_stacks_on_tier_price(self):
        result = calculate_item_total(90, 10, 5)
        assert result.subtotal == 900
        assert result.discount_amount == 45
        assert result.total == 855

    def test_none_discount_treated_as_zero(self):
        result = calculate_item_total(180, 7, None)
        assert result.discount_amount == 0
        assert result.total == 1260

    def test_price_line_combines_tier_and_loyalty(self):
        result = price_line(_ladder_product(), 12, 3)
        assert result.price_per_kg == 170
        assert result.subtotal == 2040
        assert result.discount_amount == pytest.approx(61.2)
        assert result.total_after_discount == pytest.approx(1978.8)
        assert result.savings == pytest.approx(421.2)
        assert result.tier_applied == TierLabel.TIER_10KG_UP


class TestPriceTiers:
    def test_ascending_with_discount_percent(self):
        tiers = build_price_tiers(_ladder_product())
        assert [t.tier_range for t in tiers] == [
            TierLabel.TIER_2_4KG,
            TierLabel.TIER_5_9KG,
            TierLabel.TIER_10KG_UP,
        ]
        assert [t.discount_percent for t in tiers] == [5.0, 10.0, 15.0]

    def test_unconfigured_tiers_are_omitted(self):
        tiers = build_price_tiers(_ladder_product(tier_5_9kg_price=0))
        assert len(tiers) == 2

    def test_no_tier_pricing(self):
        assert build_price_tiers(_ladder_product(has_tier_pricing=False)) == []


class TestRounding:
    def test_half_up(self):
        assert round_currency(2.5) == 3
        assert round_currency(3.5) == 4
        assert round_currency(1978.8) == 1979
        assert round_currency(1978.4) == 1978

    def test_round_half_up_places(self):
        assert round_half_up(5.25, 1) == 5.3
        assert round_half_up(-0.05, 1) == -0.1
