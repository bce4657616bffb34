"""
Pricing — the one place tier prices, loyalty stacking and rounding live.

Callers import from this package:
    from rice_storefront.pricing import price_line, validate_quantity
"""

from .engine import (
    resolve_tier_price,
    calculate_subtotal,
    calculate_savings,
    calculate_item_total,
    price_line,
    build_price_tiers,
    round_currency,
    round_half_up,
)
from .validation import (
    PricingValidationError,
    InvalidQuantity,
    ZeroPriceProduct,
    ZeroTotalOrder,
    UnavailableProduct,
    InvalidDiscount,
    InvalidOrder,
    validate_quantity,
    validate_discount_percent,
    validate_product_orderable,
    validate_order_total,
    validate_item_count,
    validate_customer_details,
    normalize_phone_number,
)

__all__ = [
    "resolve_tier_price",
    "calculate_subtotal",
    "calculate_savings",
    "calculate_item_total",
    "price_line",
    "build_price_tiers",
    "round_currency",
    "round_half_up",
    "PricingValidationError",
    "InvalidQuantity",
    "ZeroPriceProduct",
    "ZeroTotalOrder",
    "UnavailableProduct",
    "InvalidDiscount",
    "InvalidOrder",
    "validate_quantity",
    "validate_discount_percent",
    "validate_product_orderable",
    "validate_order_total",
    "validate_item_count",
    "validate_customer_details",
    "normalize_phone_number",
]
