"""
Order Service — turns a validated order request into backend records.

Write order (the backend has no transactions):
  1. order items   2. order   3. address   4. order.address_id
Items are written before the order so a failed order never points at
missing items. If any write fails, whatever was already created (address,
order, items) is deleted again on a best-effort basis: rollback failures
are logged, never retried, and the original error is re-raised.

Every persisted amount is rounded once, half-up, via round_currency().
"""

from __future__ import annotations

import logging
import math
from typing import Optional

from rice_storefront.models.enums import DiscountReason, OrderStatus, TierLabel
from rice_storefront.models.schemas import (
    Address,
    Customer,
    CreateOrderItemRequest,
    CreateOrderRequest,
    Order,
    OrderItem,
    OrderPage,
    OrderWithDetails,
    Product,
)
from rice_storefront.persistence.document_store import (
    ADDRESSES,
    CUSTOMERS,
    ORDER_ITEMS,
    ORDERS,
    PRODUCTS,
    DocumentNotFound,
    DocumentStore,
    new_id,
)
from rice_storefront.pricing import (
    InvalidOrder,
    calculate_item_total,
    resolve_tier_price,
    round_currency,
    validate_discount_percent,
    validate_item_count,
    validate_order_total,
    validate_product_orderable,
    validate_quantity,
)
from rice_storefront.services.audit_service import AuditService
from rice_storefront.services.cart_service import bags_from_quantity
from rice_storefront.services.discount_service import DiscountService
from rice_storefront.services.loyalty_service import LoyaltyService

logger = logging.getLogger(__name__)


VALID_TRANSITIONS: dict[OrderStatus, list[OrderStatus]] = {
    OrderStatus.PENDING: [OrderStatus.ACCEPTED],
    OrderStatus.ACCEPTED: [OrderStatus.OUT_FOR_DELIVERY],
    OrderStatus.OUT_FOR_DELIVERY: [OrderStatus.DELIVERED],
    OrderStatus.DELIVERED: [OrderStatus.RETURNED],
    OrderStatus.RETURNED: [],
}


class InvalidStatusTransition(ValueError):
    pass


def generate_maps_url(latitude: float, longitude: float, platform: str = "web") -> str:
    if platform == "ios":
        return f"https://maps.apple.com/?q={latitude},{longitude}"
    return f"https://www.google.com/maps?q={latitude},{longitude}"


class OrderService:
    def __init__(
        self,
        store: DocumentStore,
        audit: AuditService | None = None,
        loyalty: LoyaltyService | None = None,
    ):
        self.store = store
        self.audit = audit or AuditService()
        self.loyalty = loyalty or LoyaltyService(store)
        self.discounts = DiscountService(self.loyalty)

    # ── Lookups ──────────────────────────────────────────

    def get_product(self, product_id: str) -> Product:
        return Product.model_validate(self.store.get(PRODUCTS, product_id.strip()))

    def get_customer(self, customer_id: str) -> Customer:
        return Customer.model_validate(self.store.get(CUSTOMERS, customer_id))

    def upsert_customer(self, full_name: str, phone: str, email: str = "") -> Customer:
        """Customers are keyed by normalized phone; a repeat buyer's name is refreshed."""
        existing = self.store.list(CUSTOMERS, phone=phone)
        if existing:
            customer = Customer.model_validate(existing[0])
            changes = {"full_name": full_name.strip(), "email": email or customer.email}
            return Customer.model_validate(self.store.update(CUSTOMERS, customer.id, changes))

        customer = Customer(id=new_id(), full_name=full_name.strip(), phone=phone, email=email)
        return Customer.model_validate(self.store.create(CUSTOMERS, customer.model_dump(mode="json")))

    # ── Creation ─────────────────────────────────────────

    def create_order(self, request: CreateOrderRequest) -> OrderWithDetails:
        validate_item_count(len(request.items))
        customer = self.get_customer(request.customer_id)

        loyalty_percent = 0.0
        if request.discount_code:
            code_check = self.discounts.validate_discount_code(request.discount_code)
            if not code_check.is_valid:
                raise InvalidOrder(code_check.message)
            loyalty_percent = code_check.discount_percentage

        order_id = new_id()
        items = [
            self._price_item(order_id, item_request, loyalty_percent)
            for item_request in request.items
        ]

        order = Order(
            id=order_id,
            customer_id=customer.id,
            total_items_count=len(items),
            total_weight_kg=sum(i.quantity_kg for i in items),
            subtotal_before_discount=sum(i.subtotal_before_discount for i in items),
            total_discount_amount=sum(i.discount_amount for i in items),
            total_price=sum(i.total_after_discount for i in items),
        )
        validate_order_total(order.total_price)

        address = Address(
            id=new_id(),
            customer_id=customer.id,
            order_id=order_id,
            address_line=request.address.address_line,
            latitude=request.address.latitude,
            longitude=request.address.longitude,
        )
        if address.latitude is not None and address.longitude is not None:
            address.maps_url = generate_maps_url(address.latitude, address.longitude)

        self._write_order(order, items, address)
        self.audit.record(
            order_id, "created",
            f"{order.total_items_count} items, {order.total_weight_kg:g}kg, total {order.total_price}",
        )
        logger.info(f"Created order {order_id} for customer {customer.id}: total {order.total_price}")

        if request.discount_code:
            self._redeem_code(request.discount_code, order_id)
        self._issue_loyalty_reward(customer, order, items)

        return OrderWithDetails(
            **order.model_dump(),
            items=items,
            customer=customer,
            address=address,
        )

    def _price_item(
        self,
        order_id: str,
        item_request: CreateOrderItemRequest,
        loyalty_percent: float,
    ) -> OrderItem:
        """Validate one line and snapshot its pricing."""
        validate_quantity(item_request.quantity_kg)
        product = self.get_product(item_request.product_id)
        validate_product_orderable(product)

        quantity = item_request.quantity_kg
        tier = resolve_tier_price(product, quantity)
        if item_request.is_custom_price:
            price_per_kg = item_request.custom_price_per_kg or product.base_price_per_kg
        else:
            price_per_kg = tier.price_per_kg

        if item_request.discount is not None:
            percent = item_request.discount.percentage
            reason = item_request.discount.reason
        elif loyalty_percent > 0:
            percent, reason = loyalty_percent, DiscountReason.LOYALTY
        elif tier.tier_applied != TierLabel.BASE:
            percent, reason = 0.0, DiscountReason.BULK
        else:
            percent, reason = 0.0, DiscountReason.NONE
        validate_discount_percent(percent)

        totals = calculate_item_total(price_per_kg, quantity, percent)
        subtotal_before = round_currency(totals.subtotal)
        discount = round_currency(totals.discount_amount)
        total_after = subtotal_before - discount

        return OrderItem(
            id=new_id(),
            order_id=order_id,
            product_id=product.id,
            product_name=product.name,
            product_description=product.description,
            quantity_kg=quantity,
            bags=item_request.bags or bags_from_quantity(quantity),
            price_per_kg_at_order=price_per_kg,
            base_price_per_kg_at_order=product.base_price_per_kg,
            tier_applied=tier.tier_applied,
            tier_price_at_order=tier.price_per_kg,
            discount_percentage=percent,
            discount_amount=discount,
            discount_reason=reason,
            subtotal_before_discount=subtotal_before,
            total_after_discount=total_after,
            notes=item_request.notes,
            is_custom_price=item_request.is_custom_price,
        )

    def _write_order(self, order: Order, items: list[OrderItem], address: Address) -> None:
        created_items: list[str] = []
        order_created = False
        address_id: Optional[str] = None
        try:
            for item in items:
                self.store.create(ORDER_ITEMS, item.model_dump(mode="json"))
                created_items.append(item.id)
            self.store.create(ORDERS, order.model_dump(mode="json"))
            order_created = True
            self.store.create(ADDRESSES, address.model_dump(mode="json"))
            address_id = address.id
            self.store.update(ORDERS, order.id, {"address_id": address.id})
            order.address_id = address.id
        except Exception as exc:
            logger.error(f"Order {order.id} creation failed: {exc}; rolling back")
            self._rollback(order.id, created_items, order_created, address_id)
            raise

    def _rollback(
        self,
        order_id: str,
        item_ids: list[str],
        order_created: bool,
        address_id: Optional[str] = None,
    ) -> None:
        if address_id:
            try:
                self.store.delete(ADDRESSES, address_id)
            except Exception as exc:
                logger.error(f"Rollback: could not delete address {address_id}: {exc}")
        if order_created:
            try:
                self.store.delete(ORDERS, order_id)
            except Exception as exc:
                logger.error(f"Rollback: could not delete order {order_id}: {exc}")
        for item_id in item_ids:
            try:
                self.store.delete(ORDER_ITEMS, item_id)
            except Exception as exc:
                logger.error(f"Rollback: could not delete order item {item_id}: {exc}")
        self.audit.record(order_id, "rolled_back", f"{len(item_ids)} items removed")

    def _redeem_code(self, discount_code: str, order_id: str) -> None:
        try:
            self.discounts.apply_discount_code(discount_code, order_id)
        except Exception as exc:
            # The order stands; the unredeemed code needs admin attention.
            logger.error(f"Failed to mark discount code {discount_code} used for {order_id}: {exc}")

    def _issue_loyalty_reward(self, customer: Customer, order: Order, items: list[OrderItem]) -> None:
        try:
            self.loyalty.process_loyalty_discount(
                customer_id=customer.id,
                customer_name=customer.full_name,
                order_amount=order.total_price,
                product_names=[i.product_name for i in items],
                order_id=order.id,
            )
        except Exception as exc:
            logger.error(f"Loyalty processing failed for order {order.id}: {exc}")

    # ── Reads ────────────────────────────────────────────

    def get_order_with_details(self, order_id: str) -> OrderWithDetails:
        order = Order.model_validate(self.store.get(ORDERS, order_id))
        items = [OrderItem.model_validate(d) for d in self.store.list(ORDER_ITEMS, order_id=order_id)]

        customer: Optional[Customer] = None
        try:
            customer = self.get_customer(order.customer_id)
        except DocumentNotFound:
            logger.warning(f"Order {order_id} references missing customer {order.customer_id}")

        address: Optional[Address] = None
        if order.address_id:
            try:
                address = Address.model_validate(self.store.get(ADDRESSES, order.address_id))
            except DocumentNotFound:
                logger.warning(f"Order {order_id} references missing address {order.address_id}")

        return OrderWithDetails(**order.model_dump(), items=items, customer=customer, address=address)

    def get_customer_orders(self, customer_id: str) -> list[OrderWithDetails]:
        return [
            self.get_order_with_details(d["id"])
            for d in self.store.list(ORDERS, customer_id=customer_id)
        ]

    def list_all_orders(self) -> list[OrderWithDetails]:
        return [self.get_order_with_details(d["id"]) for d in self.store.list(ORDERS)]

    def list_orders(
        self,
        page: int = 1,
        limit: int = 20,
        status: str | None = None,
        search: str | None = None,
    ) -> OrderPage:
        """Admin order list: filter, search, newest first, paginate."""
        filters = {"status": status} if status and status != "all" else {}
        orders = [self.get_order_with_details(d["id"]) for d in self.store.list(ORDERS, **filters)]

        if search:
            orders = [o for o in orders if _matches(o, search)]

        orders.sort(key=lambda o: o.created_at, reverse=True)
        total = len(orders)
        offset = (page - 1) * limit
        return OrderPage(
            orders=orders[offset:offset + limit],
            total=total,
            total_pages=math.ceil(total / limit) if limit else 0,
            current_page=page,
        )

    # ── Updates ──────────────────────────────────────────

    def update_order_status(self, order_id: str, new_status: OrderStatus, notes: str = "") -> OrderWithDetails:
        order = Order.model_validate(self.store.get(ORDERS, order_id))
        new_status = OrderStatus(new_status)
        if order.status != new_status and new_status not in VALID_TRANSITIONS[order.status]:
            raise InvalidStatusTransition(
                f"Invalid status transition from {order.status.value} to {new_status.value}"
            )

        self.store.update(ORDERS, order_id, {"status": new_status.value})
        self.audit.record(
            order_id, "status_changed",
            f"{order.status.value} → {new_status.value}" + (f" ({notes})" if notes else ""),
        )
        return self.get_order_with_details(order_id)

    def delete_order(self, order_id: str) -> None:
        """Remove an order, its items and address, and any reward it earned."""
        order = Order.model_validate(self.store.get(ORDERS, order_id))
        for item in self.store.list(ORDER_ITEMS, order_id=order_id):
            self.store.delete(ORDER_ITEMS, item["id"])
        if order.address_id:
            try:
                self.store.delete(ADDRESSES, order.address_id)
            except DocumentNotFound:
                logger.warning(f"Address {order.address_id} already gone for order {order_id}")
        self.store.delete(ORDERS, order_id)
        self.loyalty.delete_by_order_id(order_id)
        self.audit.record(order_id, "deleted")


def _matches(order: OrderWithDetails, term: str) -> bool:
    needle = term.lower()
    if needle in order.id.lower():
        return True
    if order.customer and (needle in order.customer.full_name.lower() or term in order.customer.phone):
        return True
    if order.address and needle in order.address.address_line.lower():
        return True
    return any(needle in item.product_name.lower() for item in order.items)
