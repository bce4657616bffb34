"""
Pricing Engine — tiered per-kg pricing and order-line totals.

Every consumer (cart, checkout, order service, agent tools, admin
analytics) prices through these functions so their numbers always agree.

The engine is a total function: it never raises and never validates.
Absent, zero or negative tier prices fall through to the next lower tier
and finally to the base price. Quantity and price preconditions are the
caller's job (see pricing.validation).

Amounts are returned unrounded; round_currency() is applied only where an
amount is persisted.
"""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from rice_storefront.models.enums import TierLabel
from rice_storefront.models.schemas import (
    Product,
    TierPrice,
    SavingsBreakdown,
    ItemTotal,
    PricingResult,
    PriceTier,
)

# Highest threshold first; a tier applies only when configured and > 0.
_TIER_LADDER: tuple[tuple[float, str, TierLabel], ...] = (
    (10, "tier_10kg_up_price", TierLabel.TIER_10KG_UP),
    (5, "tier_5_9kg_price", TierLabel.TIER_5_9KG),
    (2, "tier_2_4kg_price", TierLabel.TIER_2_4KG),
)


def _configured(price: Optional[float]) -> bool:
    return price is not None and price > 0


def resolve_tier_price(product: Product, quantity_kg: float) -> TierPrice:
    """Effective per-kg price and the tier that produced it."""
    if not product.has_tier_pricing:
        return TierPrice(price_per_kg=product.base_price_per_kg, tier_applied=TierLabel.BASE)

    for threshold, field, label in _TIER_LADDER:
        if quantity_kg >= threshold:
            price = getattr(product, field)
            if _configured(price):
                return TierPrice(price_per_kg=price, tier_applied=label)

    return TierPrice(price_per_kg=product.base_price_per_kg, tier_applied=TierLabel.BASE)


def calculate_subtotal(product: Product, quantity_kg: float) -> float:
    return resolve_tier_price(product, quantity_kg).price_per_kg * quantity_kg


def calculate_savings(product: Product, quantity_kg: float) -> SavingsBreakdown:
    """Savings of the tiered subtotal against the base-price subtotal."""
    original_price = product.base_price_per_kg * quantity_kg
    tier = resolve_tier_price(product, quantity_kg)
    discounted_price = tier.price_per_kg * quantity_kg
    savings = original_price - discounted_price
    savings_percentage = (savings / original_price) * 100 if original_price > 0 else 0.0

    return SavingsBreakdown(
        original_price=original_price,
        discounted_price=discounted_price,
        savings=savings,
        savings_percentage=savings_percentage,
        tier_applied=tier.tier_applied if savings > 0 else None,
    )


def calculate_item_total(
    price_per_kg: float,
    quantity_kg: float,
    loyalty_discount_percent: Optional[float] = 0,
) -> ItemTotal:
    """
    Apply a percentage discount on top of an already-resolved per-kg price.
    Loyalty stacks on the tiered price, never on the base price.
    """
    percent = loyalty_discount_percent or 0
    subtotal = price_per_kg * quantity_kg
    discount_amount = subtotal * percent / 100
    return ItemTotal(
        subtotal=subtotal,
        discount_amount=discount_amount,
        total=subtotal - discount_amount,
    )


def price_line(
    product: Product,
    quantity_kg: float,
    loyalty_discount_percent: Optional[float] = 0,
) -> PricingResult:
    """Tier resolution, loyalty stacking and savings for one line in one call."""
    percent = loyalty_discount_percent or 0
    tier = resolve_tier_price(product, quantity_kg)
    item = calculate_item_total(tier.price_per_kg, quantity_kg, percent)
    original_price = product.base_price_per_kg * quantity_kg
    savings = original_price - item.total

    return PricingResult(
        quantity_kg=quantity_kg,
        base_price_per_kg=product.base_price_per_kg,
        price_per_kg=tier.price_per_kg,
        tier_applied=tier.tier_applied,
        original_price=original_price,
        subtotal=item.subtotal,
        loyalty_discount_percent=percent,
        discount_amount=item.discount_amount,
        total_after_discount=item.total,
        savings=savings,
        savings_percentage=(savings / original_price) * 100 if original_price > 0 else 0.0,
    )


def build_price_tiers(product: Product) -> list[PriceTier]:
    """Configured tiers in ascending quantity order, with % off base."""
    if not product.has_tier_pricing:
        return []

    base = product.base_price_per_kg
    tiers: list[PriceTier] = []
    for _, field, label in reversed(_TIER_LADDER):
        price = getattr(product, field)
        if not _configured(price):
            continue
        discount = round_half_up((base - price) / base * 100, 1) if base > 0 else 0.0
        tiers.append(PriceTier(tier_range=label, price_per_kg=price, discount_percent=discount))
    return tiers


def round_half_up(amount: float, places: int = 0) -> float:
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(amount)).quantize(quantum, rounding=ROUND_HALF_UP))


def round_currency(amount: float) -> int:
    """Whole currency units, half-up. Used wherever an amount is stored."""
    return int(Decimal(str(amount)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
