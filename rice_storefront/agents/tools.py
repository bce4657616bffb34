"""
Storefront tools for the sales chat agent.

The agent only sees tool payloads: every tool returns a dict with a
``success`` flag and never raises, so a bad product id or quantity turns
into an error message the model can relay to the customer. Prices are
always recomputed here through the pricing engine; nothing the model
passes in is trusted as a price.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from langchain_core.tools import StructuredTool
from pydantic import BaseModel, Field

from rice_storefront.config import get_settings
from rice_storefront.models.schemas import AddressRequest, CreateOrderItemRequest, CreateOrderRequest
from rice_storefront.persistence.document_store import DocumentNotFound
from rice_storefront.pricing import (
    PricingValidationError,
    build_price_tiers,
    price_line,
    validate_customer_details,
    validate_discount_percent,
    validate_item_count,
    validate_quantity,
)
from rice_storefront.services.order_service import OrderService

logger = logging.getLogger(__name__)


# ── Argument schemas ─────────────────────────────────────


class ToolItem(BaseModel):
    product_id: str = Field(description="Product ID")
    quantity_kg: float = Field(description="Quantity in kg")


class CalculateOrderPriceArgs(BaseModel):
    items: list[ToolItem] = Field(description="Items with product_id and quantity_kg")
    discount_code: Optional[str] = Field(default=None, description="Loyalty discount code (optional)")


class GetPriceTiersArgs(BaseModel):
    product_id: str = Field(description="Product ID")


class CreateOrderArgs(BaseModel):
    customer_name: str = Field(description="Customer full name")
    phone_number: str = Field(description="Customer phone number with country code")
    delivery_address: str = Field(description="Complete delivery address")
    items: list[ToolItem] = Field(description="Items with product_id and quantity_kg")
    customer_email: Optional[str] = Field(default=None, description="Customer email (optional)")
    latitude: Optional[float] = Field(default=None, description="Delivery latitude (optional, from GPS)")
    longitude: Optional[float] = Field(default=None, description="Delivery longitude (optional, from GPS)")
    discount_code: Optional[str] = Field(default=None, description="Loyalty discount code (optional)")


# ── Tool implementations ─────────────────────────────────


class StorefrontTools:
    def __init__(self, orders: OrderService):
        self.orders = orders

    def calculate_order_price(self, items: list, discount_code: Optional[str] = None) -> dict[str, Any]:
        """Price breakdown for a prospective order, same numbers as the cart and the order."""
        items = [ToolItem.model_validate(i) for i in items]
        currency = get_settings().currency
        try:
            if not items:
                return _failure("At least one item is required", calculation=None)
            validate_item_count(len(items))

            discount_percent = 0.0
            if discount_code:
                code_check = self.orders.discounts.validate_discount_code(discount_code)
                if not code_check.is_valid:
                    return _failure(code_check.message, calculation=None)
                discount_percent = code_check.discount_percentage
            validate_discount_percent(discount_percent)

            breakdown = []
            unavailable: list[str] = []
            subtotal = 0.0
            for item in items:
                try:
                    validate_quantity(item.quantity_kg)
                except PricingValidationError as exc:
                    return _failure(f"Invalid quantity for product {item.product_id}: {exc.message}",
                                    calculation=None)

                product = self.orders.get_product(item.product_id)
                if not product.available:
                    unavailable.append(product.name)
                    continue

                pricing = price_line(product, item.quantity_kg, discount_percent)
                subtotal += pricing.total_after_discount
                breakdown.append({
                    "product_id": product.id,
                    "product_name": product.name,
                    "quantity_kg": item.quantity_kg,
                    "base_price_per_kg": pricing.base_price_per_kg,
                    "applied_price_per_kg": pricing.price_per_kg,
                    "tier_applied": pricing.tier_applied.value,
                    "discount_amount": pricing.discount_amount,
                    "subtotal": pricing.total_after_discount,
                    "savings": (
                        f"{currency} {pricing.savings:.2f} ({pricing.savings_percentage:.1f}% off)"
                        if pricing.savings > 0 else "No discount"
                    ),
                })

            if unavailable:
                return _failure(
                    f"The following products are currently unavailable: {', '.join(unavailable)}",
                    calculation=None,
                )

            return {
                "success": True,
                "calculation": {
                    "items": breakdown,
                    "subtotal": subtotal,
                    "discount_percent": discount_percent,
                    "delivery_fee": 0,
                    "grand_total": subtotal,
                },
                "message": f"Total: {currency} {subtotal:.2f} (Free delivery!)",
            }
        except PricingValidationError as exc:
            return _failure(exc.message, calculation=None)
        except DocumentNotFound as exc:
            return _failure(f"Product {exc.doc_id} not found", calculation=None)
        except Exception as exc:
            logger.exception("calculate_order_price failed")
            return _failure(str(exc) or "Failed to calculate price", calculation=None)

    def get_price_tiers(self, product_id: str) -> dict[str, Any]:
        try:
            product = self.orders.get_product(product_id)
        except DocumentNotFound:
            return _failure(f"Product {product_id} not found", tiers=[])
        return {
            "success": True,
            "product_id": product.id,
            "product_name": product.name,
            "base_price_per_kg": product.base_price_per_kg,
            "tiers": [t.model_dump(mode="json") for t in build_price_tiers(product)],
        }

    def create_order(
        self,
        customer_name: str,
        phone_number: str,
        delivery_address: str,
        items: list,
        customer_email: Optional[str] = None,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        discount_code: Optional[str] = None,
    ) -> dict[str, Any]:
        """Validate customer details, then place the order through the order service."""
        items = [ToolItem.model_validate(i) for i in items]
        try:
            phone, email = validate_customer_details(
                customer_name, phone_number, delivery_address, customer_email
            )
            customer = self.orders.upsert_customer(customer_name, phone, email)
            order = self.orders.create_order(CreateOrderRequest(
                customer_id=customer.id,
                items=[
                    CreateOrderItemRequest(product_id=i.product_id, quantity_kg=i.quantity_kg)
                    for i in items
                ],
                address=AddressRequest(
                    address_line=delivery_address.strip(),
                    latitude=latitude,
                    longitude=longitude,
                ),
                discount_code=discount_code,
            ))
        except PricingValidationError as exc:
            return _failure(exc.message, order=None, message="Please check the order details.")
        except DocumentNotFound as exc:
            return _failure(f"Product {exc.doc_id} not found", order=None,
                            message="Please check the order details.")
        except Exception as exc:
            logger.exception("create_order tool failed")
            return _failure(str(exc) or "Failed to create order", order=None,
                            message="Unable to place order. Please try again or contact support.")

        currency = get_settings().currency
        return {
            "success": True,
            "order": {
                "order_id": order.id,
                "total_price": order.total_price,
                "total_weight_kg": order.total_weight_kg,
                "status": order.status.value,
            },
            "message": (
                f"Order {order.id} created successfully! "
                f"Total {currency} {order.total_price}. We'll deliver in 2-3 business days."
            ),
        }


def _failure(error: str, **extra: Any) -> dict[str, Any]:
    return {"success": False, "error": error, **extra}


def build_tools(orders: OrderService) -> list[StructuredTool]:
    """LangChain tools bound to one order service."""
    impl = StorefrontTools(orders)
    return [
        StructuredTool.from_function(
            func=impl.calculate_order_price,
            name="calculate_order_price",
            description=(
                "Calculate the total price for an order from products and quantities, "
                "with bulk tier discounts and an optional loyalty discount code applied. "
                "Use this before creating an order."
            ),
            args_schema=CalculateOrderPriceArgs,
        ),
        StructuredTool.from_function(
            func=impl.get_price_tiers,
            name="get_price_tiers",
            description="List the bulk price tiers configured for a product.",
            args_schema=GetPriceTiersArgs,
        ),
        StructuredTool.from_function(
            func=impl.create_order,
            name="create_order",
            description=(
                "Create a new order. Always get explicit customer confirmation of name, "
                "phone, address, items and total before using this tool."
            ),
            args_schema=CreateOrderArgs,
        ),
    ]
