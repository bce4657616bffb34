"""
API routes — thin HTTP layer over the pricing engine and services.

Routes:
  GET    /health                                → API health check
  GET    /api/products                          → Catalog
  POST   /api/pricing/quote                     → Price one product/quantity
  GET    /api/pricing/products/{id}/tiers       → Configured bulk tiers
  POST   /api/cart/quote                        → Checkout quote for a cart
  POST   /api/orders                            → Place an order
  GET    /api/orders                            → Admin order list (filter/search/paginate)
  GET    /api/orders/{id}                       → Order with items, customer, address
  PATCH  /api/orders/{id}/status                → Status transition
  DELETE /api/orders/{id}                       → Remove an order
  POST   /api/discounts/validate                → Check a discount code
  POST   /api/admin/products                    → Add a product
  GET    /api/admin/analytics                   → Order analytics
  GET    /api/admin/stats                       → Dashboard counters
  GET    /api/admin/staff-performance           → Per sales channel totals
  GET    /api/admin/product-analytics           → Per product sales
  GET    /api/admin/customers/{id}              → Customer lifetime stats
  GET    /api/admin/orders/export               → CSV export (date and status filters)

Services live on app.state and are injected with Depends().
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import Response
from pydantic import BaseModel, Field

from rice_storefront import analytics
from rice_storefront.models.enums import OrderStatus
from rice_storefront.models.schemas import (
    CartQuote,
    CreateOrderRequest,
    Customer,
    CustomerStats,
    DashboardStats,
    DiscountValidationResult,
    OrderAnalytics,
    OrderPage,
    OrderWithDetails,
    PriceTier,
    PricingResult,
    Product,
    ProductAnalytics,
    StaffPerformance,
)
from rice_storefront.persistence.document_store import CUSTOMERS, PRODUCTS, DocumentStore, new_id
from rice_storefront.pricing import (
    build_price_tiers,
    price_line,
    validate_product_orderable,
    validate_quantity,
)
from rice_storefront.services import Cart, OrderService, checkout_preflight

logger = logging.getLogger(__name__)

# ── Routers ──────────────────────────────────────────────
health_router = APIRouter()
catalog_router = APIRouter()
pricing_router = APIRouter()
cart_router = APIRouter()
order_router = APIRouter()
discount_router = APIRouter()
admin_router = APIRouter()


# ── Dependencies ─────────────────────────────────────────

def get_store(request: Request) -> DocumentStore:
    return request.app.state.store


def get_order_service(request: Request) -> OrderService:
    return request.app.state.order_service


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    """Query datetimes without an offset are taken as UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# ── Request schemas ──────────────────────────────────────
class QuoteRequest(BaseModel):
    product_id: str
    quantity_kg: float
    loyalty_discount_percent: float = Field(default=0.0, ge=0, le=100)


class CartItemRequest(BaseModel):
    product_id: str
    quantity_kg: float


class CartQuoteRequest(BaseModel):
    items: list[CartItemRequest]
    discount_code: Optional[str] = None


class StatusUpdateRequest(BaseModel):
    status: OrderStatus
    notes: str = ""


class DiscountCodeRequest(BaseModel):
    code: str


# ── Health ───────────────────────────────────────────────

@health_router.get("/health")
async def health_check():
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


# ── Catalog & pricing ────────────────────────────────────

@catalog_router.get("", response_model=list[Product])
def list_products(store: DocumentStore = Depends(get_store)):
    return [Product.model_validate(d) for d in store.list(PRODUCTS)]


@pricing_router.post("/quote", response_model=PricingResult)
def quote_price(body: QuoteRequest, orders: OrderService = Depends(get_order_service)):
    product = orders.get_product(body.product_id)
    validate_product_orderable(product)
    validate_quantity(body.quantity_kg)
    return price_line(product, body.quantity_kg, body.loyalty_discount_percent)


@pricing_router.get("/products/{product_id}/tiers", response_model=list[PriceTier])
def product_tiers(product_id: str, orders: OrderService = Depends(get_order_service)):
    return build_price_tiers(orders.get_product(product_id))


@cart_router.post("/quote", response_model=CartQuote)
def quote_cart_route(body: CartQuoteRequest, orders: OrderService = Depends(get_order_service)):
    loyalty_percent = 0.0
    if body.discount_code:
        result = orders.discounts.validate_discount_code(body.discount_code)
        if result.is_valid:
            loyalty_percent = result.discount_percentage
        else:
            logger.info(f"Cart quote ignoring discount code: {result.message}")

    cart = Cart()
    for item in body.items:
        cart.add_item(orders.get_product(item.product_id), item.quantity_kg)
    return checkout_preflight(cart, loyalty_percent)


# ── Orders ───────────────────────────────────────────────

@order_router.post("", response_model=OrderWithDetails, status_code=201)
def create_order(body: CreateOrderRequest, orders: OrderService = Depends(get_order_service)):
    return orders.create_order(body)


@order_router.get("", response_model=OrderPage)
def list_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[str] = None,
    search: Optional[str] = None,
    orders: OrderService = Depends(get_order_service),
):
    return orders.list_orders(page=page, limit=limit, status=status, search=search)


@order_router.get("/{order_id}", response_model=OrderWithDetails)
def get_order(order_id: str, orders: OrderService = Depends(get_order_service)):
    return orders.get_order_with_details(order_id)


@order_router.patch("/{order_id}/status", response_model=OrderWithDetails)
def update_status(
    order_id: str,
    body: StatusUpdateRequest,
    orders: OrderService = Depends(get_order_service),
):
    return orders.update_order_status(order_id, body.status, body.notes)


@order_router.delete("/{order_id}", status_code=204)
def delete_order(order_id: str, orders: OrderService = Depends(get_order_service)):
    orders.delete_order(order_id)
    return Response(status_code=204)


# ── Discounts ────────────────────────────────────────────

@discount_router.post("/validate", response_model=DiscountValidationResult)
def validate_code(body: DiscountCodeRequest, orders: OrderService = Depends(get_order_service)):
    return orders.discounts.validate_discount_code(body.code)


# ── Admin ────────────────────────────────────────────────

@admin_router.post("/products", response_model=Product, status_code=201)
def add_product(product: Product, store: DocumentStore = Depends(get_store)):
    if not product.id:
        product.id = new_id()
    return Product.model_validate(store.create(PRODUCTS, product.model_dump(mode="json")))


@admin_router.get("/analytics", response_model=OrderAnalytics)
def order_analytics(
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    orders: OrderService = Depends(get_order_service),
):
    return analytics.order_analytics(orders.list_all_orders(), _aware(start), _aware(end))


@admin_router.get("/stats", response_model=DashboardStats)
def dashboard_stats(
    store: DocumentStore = Depends(get_store),
    orders: OrderService = Depends(get_order_service),
):
    products = [Product.model_validate(d) for d in store.list(PRODUCTS)]
    return analytics.dashboard_stats(
        orders.list_all_orders(), products, total_customers=len(store.list(CUSTOMERS))
    )


@admin_router.get("/staff-performance", response_model=StaffPerformance)
def staff_performance(
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    store: DocumentStore = Depends(get_store),
    orders: OrderService = Depends(get_order_service),
):
    customers = {d["id"]: Customer.model_validate(d) for d in store.list(CUSTOMERS)}
    return analytics.staff_performance(orders.list_all_orders(), customers, _aware(start), _aware(end))


@admin_router.get("/product-analytics", response_model=list[ProductAnalytics])
def product_analytics(
    product_id: Optional[str] = None,
    store: DocumentStore = Depends(get_store),
    orders: OrderService = Depends(get_order_service),
):
    products = [Product.model_validate(d) for d in store.list(PRODUCTS)]
    return analytics.product_analytics(orders.list_all_orders(), products, product_id)


@admin_router.get("/customers/{customer_id}", response_model=CustomerStats)
def customer_stats(customer_id: str, orders: OrderService = Depends(get_order_service)):
    orders.get_customer(customer_id)
    return analytics.customer_stats(orders.get_customer_orders(customer_id))


@admin_router.get("/orders/export")
def export_orders(
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    status: Optional[str] = None,
    orders: OrderService = Depends(get_order_service),
):
    content = analytics.export_orders_csv(
        orders.list_all_orders(), _aware(start), _aware(end), status=status,
    )
    filename = f"orders-{datetime.now(timezone.utc).date().isoformat()}.csv"
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
