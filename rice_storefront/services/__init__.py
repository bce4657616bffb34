"""Services — Cart, OrderService, LoyaltyService, DiscountService, AuditService."""

from rice_storefront.services.audit_service import AuditService
from rice_storefront.services.cart_service import Cart, quote_cart, checkout_preflight
from rice_storefront.services.loyalty_service import LoyaltyService, DiscountCodeError
from rice_storefront.services.discount_service import DiscountService
from rice_storefront.services.order_service import OrderService, InvalidStatusTransition

__all__ = [
    "AuditService",
    "Cart",
    "quote_cart",
    "checkout_preflight",
    "LoyaltyService",
    "DiscountCodeError",
    "DiscountService",
    "OrderService",
    "InvalidStatusTransition",
]
