"""
Reusable data schemas for the storefront.
Catalog, pricing breakdowns, cart, order records written to the backend,
loyalty rewards and admin analytics results.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional
from pydantic import BaseModel, Field

from .enums import (
    TierLabel,
    OrderStatus,
    SalesChannel,
    CodeStatus,
    DiscountReason,
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ── Catalog ──────────────────────────────────────────────


class Product(BaseModel):
    """A catalog product. Only the pricing fields matter to the engine."""
    id: str = ""
    name: str = ""
    description: str = ""
    base_price_per_kg: float = 0.0
    has_tier_pricing: bool = False
    tier_2_4kg_price: Optional[float] = None
    tier_5_9kg_price: Optional[float] = None
    tier_10kg_up_price: Optional[float] = None
    available: bool = True
    created_at: datetime = Field(default_factory=_utcnow)


# ── Pricing engine outputs ───────────────────────────────


class TierPrice(BaseModel):
    price_per_kg: float
    tier_applied: TierLabel = TierLabel.BASE


class SavingsBreakdown(BaseModel):
    original_price: float
    discounted_price: float
    savings: float
    savings_percentage: float
    tier_applied: Optional[TierLabel] = None  # display only


class ItemTotal(BaseModel):
    subtotal: float
    discount_amount: float
    total: float


class PricingResult(BaseModel):
    """Full breakdown for one product/quantity, loyalty applied after tiers."""
    quantity_kg: float
    base_price_per_kg: float
    price_per_kg: float
    tier_applied: TierLabel = TierLabel.BASE
    original_price: float = 0.0  # base price * quantity
    subtotal: float = 0.0  # tiered price * quantity
    loyalty_discount_percent: float = 0.0
    discount_amount: float = 0.0  # loyalty part only
    total_after_discount: float = 0.0
    savings: float = 0.0  # original_price - total_after_discount
    savings_percentage: float = 0.0


class PriceTier(BaseModel):
    tier_range: TierLabel
    price_per_kg: float
    discount_percent: float = 0.0  # vs. base price, one decimal


# ── Cart ─────────────────────────────────────────────────


class BagBreakdown(BaseModel):
    kg1: int = 0
    kg5: int = 0
    kg10: int = 0
    kg25: int = 0


class CartLine(BaseModel):
    product: Product
    quantity_kg: float
    bags: BagBreakdown = Field(default_factory=BagBreakdown)


class CartLineQuote(BaseModel):
    product_id: str
    product_name: str
    pricing: PricingResult


class CartQuote(BaseModel):
    lines: list[CartLineQuote] = []
    total_weight_kg: float = 0.0
    original_total: float = 0.0
    subtotal: float = 0.0
    tier_savings: float = 0.0
    loyalty_discount_amount: float = 0.0
    grand_total: float = 0.0
    total_savings: float = 0.0
    savings_percentage: float = 0.0


# ── Backend records ──────────────────────────────────────


class Customer(BaseModel):
    id: str = ""
    user_id: str = "guest"
    full_name: str
    phone: str = ""
    email: str = ""
    # Attribution is a first-class field; legacy records leave it unset
    sales_channel: Optional[SalesChannel] = None
    created_at: datetime = Field(default_factory=_utcnow)


class Address(BaseModel):
    id: str = ""
    customer_id: str
    order_id: str
    address_line: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    maps_url: str = ""
    created_at: datetime = Field(default_factory=_utcnow)


class OrderItem(BaseModel):
    """Normalized order line; the source of truth for what was sold."""
    id: str = ""
    order_id: str
    product_id: str

    # Product snapshot
    product_name: str
    product_description: str = ""

    quantity_kg: float
    bags: BagBreakdown = Field(default_factory=BagBreakdown)

    # Price snapshot (whole currency units where rounded)
    price_per_kg_at_order: float
    base_price_per_kg_at_order: float
    tier_applied: TierLabel = TierLabel.BASE
    tier_price_at_order: float = 0.0

    discount_percentage: float = 0.0
    discount_amount: int = 0  # percentage discount on the applied price
    discount_reason: DiscountReason = DiscountReason.NONE

    subtotal_before_discount: int = 0  # applied price * quantity
    total_after_discount: int = 0

    notes: str = ""
    is_custom_price: bool = False
    created_at: datetime = Field(default_factory=_utcnow)


class Order(BaseModel):
    id: str = ""
    customer_id: str
    address_id: str = ""
    total_items_count: int = 0
    total_weight_kg: float = 0.0
    subtotal_before_discount: int = 0
    total_discount_amount: int = 0
    total_price: int = 0
    status: OrderStatus = OrderStatus.PENDING
    created_at: datetime = Field(default_factory=_utcnow)


class OrderWithDetails(Order):
    items: list[OrderItem] = []
    customer: Optional[Customer] = None
    address: Optional[Address] = None


class OrderPage(BaseModel):
    orders: list[OrderWithDetails] = []
    total: int = 0
    total_pages: int = 0
    current_page: int = 1


# ── Order requests ───────────────────────────────────────


class AddressRequest(BaseModel):
    address_line: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class DiscountRequest(BaseModel):
    percentage: float = Field(default=0.0, ge=0, le=100)
    reason: DiscountReason = DiscountReason.MANUAL


class CreateOrderItemRequest(BaseModel):
    product_id: str
    quantity_kg: float
    bags: Optional[BagBreakdown] = None
    discount: Optional[DiscountRequest] = None
    notes: str = ""
    is_custom_price: bool = False
    custom_price_per_kg: Optional[float] = None


class CreateOrderRequest(BaseModel):
    customer_id: str
    items: list[CreateOrderItemRequest]
    address: AddressRequest
    discount_code: Optional[str] = None
    notes: str = ""


# ── Loyalty ──────────────────────────────────────────────


class LoyaltyDiscount(BaseModel):
    id: str = ""
    type: str = "loyalty"
    customer_id: str
    customer_name: str = ""
    total_purchases: int = 0
    total_purchase_amount: float = 0.0
    rule_name: str = ""
    discount_percentage: float = 0.0
    rule_active: bool = True
    discount_code: str
    code_status: CodeStatus = CodeStatus.ACTIVE
    order_id: str = ""  # order that generated this reward
    used_in_order_id: str = ""
    code_generated_at: Optional[datetime] = None
    code_used_at: Optional[datetime] = None


class DiscountValidationResult(BaseModel):
    is_valid: bool
    discount_percentage: float = 0.0
    message: str
    loyalty_discount: Optional[LoyaltyDiscount] = None


# ── Audit ────────────────────────────────────────────────


class AuditEntry(BaseModel):
    order_id: str
    action: str
    details: str = ""
    timestamp: datetime = Field(default_factory=_utcnow)


# ── Admin analytics ──────────────────────────────────────


class ProductSales(BaseModel):
    product_id: str
    product_name: str
    total_quantity: float = 0.0
    total_revenue: float = 0.0
    order_count: int = 0


class RevenueByDay(BaseModel):
    date: str
    revenue: float = 0.0
    orders: int = 0


class OrderAnalytics(BaseModel):
    total_orders: int = 0
    total_revenue: float = 0.0
    total_weight: float = 0.0
    average_order_value: float = 0.0
    status_breakdown: dict[str, int] = {}
    top_products: list[ProductSales] = []
    revenue_by_day: list[RevenueByDay] = []


class DashboardStats(BaseModel):
    total_orders: int = 0
    total_revenue: float = 0.0
    total_products: int = 0
    total_customers: int = 0
    pending_orders: int = 0
    accepted_orders: int = 0
    out_for_delivery_orders: int = 0
    delivered_orders: int = 0
    returned_orders: int = 0
    available_products: int = 0
    revenue_growth: float = 0.0
    orders_growth: float = 0.0


class CustomerStats(BaseModel):
    total_orders: int = 0
    total_spent: float = 0.0
    average_order_value: float = 0.0
    total_weight: float = 0.0


class ChannelStats(BaseModel):
    total_orders: int = 0
    total_revenue: float = 0.0
    total_weight: float = 0.0


class StaffPerformance(BaseModel):
    s_agent: ChannelStats = Field(default_factory=ChannelStats)
    k_agent: ChannelStats = Field(default_factory=ChannelStats)
    direct: ChannelStats = Field(default_factory=ChannelStats)
    total: ChannelStats = Field(default_factory=ChannelStats)


class ProductAnalytics(BaseModel):
    product_id: str
    product_name: str
    total_sold: float = 0.0
    total_revenue: float = 0.0
    order_count: int = 0
    average_price: float = 0.0
    last_order_date: Optional[datetime] = None
