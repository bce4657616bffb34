"""
Order validation — the guards every caller runs before pricing.

The engine itself accepts anything; checkout, the order service and the
agent tools call these first and surface the error message to the user.
Each failure kind is its own exception type so callers can react to it.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Optional

from rice_storefront.config import get_settings
from rice_storefront.models.schemas import Product

logger = logging.getLogger(__name__)

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class PricingValidationError(ValueError):
    """Base for caller-side validation failures."""

    kind = "validation_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidQuantity(PricingValidationError):
    kind = "invalid_quantity"


class ZeroPriceProduct(PricingValidationError):
    kind = "zero_price_product"


class ZeroTotalOrder(PricingValidationError):
    kind = "zero_total_order"


class UnavailableProduct(PricingValidationError):
    kind = "unavailable_product"


class InvalidDiscount(PricingValidationError):
    kind = "invalid_discount"


class InvalidOrder(PricingValidationError):
    """Order shape or customer details are unusable."""
    kind = "invalid_order"


# ── Quantity & product guards ────────────────────────────


def validate_quantity(quantity_kg: float) -> None:
    max_kg = get_settings().max_quantity_kg
    if not isinstance(quantity_kg, (int, float)) or not math.isfinite(quantity_kg):
        raise InvalidQuantity("Invalid quantity value")
    if quantity_kg <= 0:
        raise InvalidQuantity("Quantity must be greater than 0")
    if quantity_kg > max_kg:
        raise InvalidQuantity(
            f"Quantity exceeds maximum limit of {max_kg:g}kg. "
            "Please contact us for bulk orders."
        )


def validate_product_orderable(product: Product) -> None:
    """Availability is checked before price so unavailable items are never quoted."""
    if not product.available:
        raise UnavailableProduct(f"{product.name or product.id} is currently unavailable")
    if product.base_price_per_kg <= 0:
        logger.warning(f"Product {product.id} has no base price configured")
        raise ZeroPriceProduct(
            f"{product.name or product.id} has no price configured and cannot be ordered"
        )


def validate_discount_percent(percent: float) -> None:
    if not isinstance(percent, (int, float)) or not math.isfinite(percent):
        raise InvalidDiscount("Invalid discount percentage")
    if percent < 0 or percent > 100:
        raise InvalidDiscount("Discount percentage must be between 0 and 100")


def validate_order_total(grand_total: float) -> None:
    if grand_total <= 0:
        raise ZeroTotalOrder("Order total must be greater than 0")


def validate_item_count(count: int) -> None:
    max_items = get_settings().max_items_per_order
    if count == 0:
        raise InvalidOrder("Order must contain at least one item")
    if count > max_items:
        raise InvalidOrder(
            f"Maximum {max_items} items allowed per order. "
            "Please contact us for larger orders."
        )


# ── Customer details ─────────────────────────────────────


def normalize_phone_number(phone: str) -> str:
    """Normalize to +<country><number>, e.g. 0300-1234567 -> +923001234567."""
    code = get_settings().phone_country_code
    digits = re.sub(r"\D", "", phone)
    if digits.startswith(code):
        return "+" + digits
    if digits.startswith("0"):
        return f"+{code}{digits[1:]}"
    return f"+{code}{digits}"


def validate_customer_details(
    full_name: str,
    phone: str,
    address_line: str,
    email: Optional[str] = None,
) -> tuple[str, str]:
    """
    Validate agent/checkout customer input.
    Returns (normalized_phone, normalized_email); email is "" when not given.
    """
    settings = get_settings()

    name = (full_name or "").strip()
    if not name:
        raise InvalidOrder("Customer name is required")
    if len(name) < settings.min_customer_name_length:
        raise InvalidOrder(
            f"Customer name must be at least {settings.min_customer_name_length} characters"
        )

    if not (phone or "").strip():
        raise InvalidOrder("Phone number is required")
    normalized_phone = normalize_phone_number(phone)
    digit_count = len(re.sub(r"\D", "", normalized_phone))
    if digit_count < 11 or digit_count > 13:
        raise InvalidOrder("Invalid phone number format")

    address = (address_line or "").strip()
    if not address:
        raise InvalidOrder("Delivery address is required")
    if len(address) < settings.min_address_length:
        raise InvalidOrder("Delivery address is too short. Please provide complete address.")

    normalized_email = ""
    if email and email.strip():
        normalized_email = email.strip().lower()
        if not _EMAIL_RE.match(normalized_email):
            raise InvalidOrder("Invalid email format")

    return normalized_phone, normalized_email
