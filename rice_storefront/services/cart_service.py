"""
Cart Service — explicit cart state and checkout quotes.

A Cart is a plain object owned by whoever handles the request (session,
API call, agent conversation); nothing here is process-global.
"""

from __future__ import annotations

import logging
from typing import Optional

from rice_storefront.models.schemas import (
    BagBreakdown,
    CartLine,
    CartLineQuote,
    CartQuote,
    Product,
)
from rice_storefront.pricing import (
    price_line,
    validate_discount_percent,
    validate_item_count,
    validate_order_total,
    validate_product_orderable,
    validate_quantity,
)

logger = logging.getLogger(__name__)

_BAG_SIZES: tuple[tuple[str, int], ...] = (("kg25", 25), ("kg10", 10), ("kg5", 5), ("kg1", 1))


def bags_from_quantity(quantity_kg: float) -> BagBreakdown:
    """Greedy split into 25/10/5/1 kg bags; any fractional kg stays in kg1."""
    remaining = quantity_kg
    counts: dict[str, int] = {}
    for name, size in _BAG_SIZES[:-1]:
        counts[name] = int(remaining // size)
        remaining = remaining % size
    counts["kg1"] = int(remaining)
    return BagBreakdown(**counts)


def quantity_from_bags(bags: BagBreakdown) -> float:
    return float(sum(getattr(bags, name) * size for name, size in _BAG_SIZES))


class Cart:
    """Lines keyed by product id; adding an existing product merges quantities."""

    def __init__(self):
        self._lines: dict[str, CartLine] = {}

    @property
    def lines(self) -> list[CartLine]:
        return list(self._lines.values())

    def __len__(self) -> int:
        return len(self._lines)

    def add_item(self, product: Product, quantity_kg: float, bags: Optional[BagBreakdown] = None) -> CartLine:
        existing = self._lines.get(product.id)
        if existing is not None:
            quantity_kg += existing.quantity_kg
            bags = None  # merged quantity gets a fresh breakdown
        line = CartLine(
            product=product,
            quantity_kg=quantity_kg,
            bags=bags or bags_from_quantity(quantity_kg),
        )
        self._lines[product.id] = line
        return line

    def update_quantity(self, product_id: str, quantity_kg: float) -> None:
        if product_id not in self._lines:
            raise KeyError(product_id)
        if quantity_kg <= 0:
            self.remove_item(product_id)
            return
        line = self._lines[product_id]
        self._lines[product_id] = CartLine(
            product=line.product,
            quantity_kg=quantity_kg,
            bags=bags_from_quantity(quantity_kg),
        )

    def remove_item(self, product_id: str) -> None:
        self._lines.pop(product_id, None)

    def clear(self) -> None:
        self._lines.clear()

    def total_weight(self) -> float:
        return sum(line.quantity_kg for line in self._lines.values())


def quote_cart(cart: Cart, loyalty_discount_percent: float = 0) -> CartQuote:
    """Price every line through the engine and roll the totals up."""
    quote = CartQuote()
    for line in cart.lines:
        pricing = price_line(line.product, line.quantity_kg, loyalty_discount_percent)
        quote.lines.append(
            CartLineQuote(
                product_id=line.product.id,
                product_name=line.product.name,
                pricing=pricing,
            )
        )
        quote.total_weight_kg += line.quantity_kg
        quote.original_total += pricing.original_price
        quote.subtotal += pricing.subtotal
        quote.loyalty_discount_amount += pricing.discount_amount
        quote.grand_total += pricing.total_after_discount

    quote.tier_savings = quote.original_total - quote.subtotal
    quote.total_savings = quote.original_total - quote.grand_total
    if quote.original_total > 0:
        quote.savings_percentage = quote.total_savings / quote.original_total * 100
    return quote


def checkout_preflight(cart: Cart, loyalty_discount_percent: float = 0) -> CartQuote:
    """
    Run every checkout guard, then quote.
    Raises the first PricingValidationError encountered.
    """
    validate_item_count(len(cart))
    validate_discount_percent(loyalty_discount_percent)
    for line in cart.lines:
        validate_product_orderable(line.product)
        validate_quantity(line.quantity_kg)

    quote = quote_cart(cart, loyalty_discount_percent)
    validate_order_total(quote.grand_total)
    logger.info(
        f"Checkout preflight OK: {len(cart)} lines, "
        f"{quote.total_weight_kg:g}kg, total {quote.grand_total:,.2f}"
    )
    return quote
