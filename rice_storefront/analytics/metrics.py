"""
Admin metrics over stored orders.

All aggregates are pure functions of already-loaded records. Revenue,
weight, averages and product rankings exclude returned orders through
is_revenue_order(); order counts and the status breakdown cover all orders.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

from rice_storefront.config import get_settings
from rice_storefront.models.enums import OrderStatus
from rice_storefront.models.schemas import (
    CustomerStats,
    DashboardStats,
    OrderAnalytics,
    OrderWithDetails,
    Product,
    ProductAnalytics,
    ProductSales,
    RevenueByDay,
)
from rice_storefront.pricing import round_half_up

logger = logging.getLogger(__name__)


def is_revenue_order(order) -> bool:
    """Returned orders never count toward revenue."""
    return order.status != OrderStatus.RETURNED


def revenue_orders(orders: Iterable) -> list:
    return [o for o in orders if is_revenue_order(o)]


def total_revenue(orders: Iterable) -> float:
    return float(sum(o.total_price for o in revenue_orders(orders)))


# ── Order analytics ──────────────────────────────────────


def order_analytics(
    orders: list[OrderWithDetails],
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> OrderAnalytics:
    if start is not None:
        orders = [o for o in orders if o.created_at >= start]
    if end is not None:
        orders = [o for o in orders if o.created_at <= end]

    active = revenue_orders(orders)
    revenue = total_revenue(orders)

    status_breakdown: dict[str, int] = defaultdict(int)
    for order in orders:
        status_breakdown[OrderStatus(order.status).value] += 1

    return OrderAnalytics(
        total_orders=len(orders),
        total_revenue=revenue,
        total_weight=sum(o.total_weight_kg for o in active),
        average_order_value=revenue / len(active) if active else 0.0,
        status_breakdown=dict(status_breakdown),
        top_products=top_products(active),
        revenue_by_day=revenue_by_day(active),
    )


def top_products(orders: list[OrderWithDetails], limit: Optional[int] = None) -> list[ProductSales]:
    limit = limit or get_settings().top_products_limit
    stats: dict[str, ProductSales] = {}
    for order in revenue_orders(orders):
        for item in order.items:
            entry = stats.setdefault(
                item.product_id,
                ProductSales(product_id=item.product_id, product_name=item.product_name),
            )
            entry.total_quantity += item.quantity_kg
            entry.total_revenue += item.total_after_discount
            entry.order_count += 1

    ranked = sorted(stats.values(), key=lambda p: p.total_revenue, reverse=True)
    return ranked[:limit]


def revenue_by_day(orders: list[OrderWithDetails]) -> list[RevenueByDay]:
    days: dict[str, RevenueByDay] = {}
    for order in revenue_orders(orders):
        date = order.created_at.astimezone(timezone.utc).date().isoformat()
        day = days.setdefault(date, RevenueByDay(date=date))
        day.revenue += order.total_price
        day.orders += 1
    return [days[d] for d in sorted(days)]


# ── Dashboard ────────────────────────────────────────────


def dashboard_stats(
    orders: list,
    products: list[Product],
    total_customers: int,
    now: Optional[datetime] = None,
) -> DashboardStats:
    """Headline counts plus growth of the last window against everything before it."""
    now = now or datetime.now(timezone.utc)
    window_start = now - timedelta(days=get_settings().growth_window_days)

    recent = [o for o in orders if o.created_at > window_start]
    revenue = total_revenue(orders)
    recent_revenue = total_revenue(recent)
    previous_revenue = revenue - recent_revenue

    revenue_growth = (recent_revenue / previous_revenue * 100 - 100) if previous_revenue > 0 else 0.0
    orders_growth = (len(recent) / len(orders) * 100) if orders else 0.0

    counts: dict[OrderStatus, int] = defaultdict(int)
    for order in orders:
        counts[OrderStatus(order.status)] += 1

    return DashboardStats(
        total_orders=len(orders),
        total_revenue=revenue,
        total_products=len(products),
        total_customers=total_customers,
        pending_orders=counts[OrderStatus.PENDING],
        accepted_orders=counts[OrderStatus.ACCEPTED],
        out_for_delivery_orders=counts[OrderStatus.OUT_FOR_DELIVERY],
        delivered_orders=counts[OrderStatus.DELIVERED],
        returned_orders=counts[OrderStatus.RETURNED],
        available_products=sum(1 for p in products if p.available),
        revenue_growth=round_half_up(revenue_growth, 1),
        orders_growth=round_half_up(orders_growth, 1),
    )


# ── Per customer / per product ───────────────────────────


def customer_stats(orders: list) -> CustomerStats:
    """Lifetime value of one customer's orders."""
    active = revenue_orders(orders)
    spent = total_revenue(orders)
    return CustomerStats(
        total_orders=len(orders),
        total_spent=spent,
        average_order_value=spent / len(active) if active else 0.0,
        total_weight=sum(o.total_weight_kg for o in active),
    )


def product_analytics(
    orders: list[OrderWithDetails],
    products: list[Product],
    product_id: Optional[str] = None,
) -> list[ProductAnalytics]:
    names = {p.id: p.name for p in products}
    totals: dict[str, dict] = {}

    for order in revenue_orders(orders):
        for item in order.items:
            if product_id and item.product_id != product_id:
                continue
            entry = totals.setdefault(item.product_id, {
                "sold": 0.0, "revenue": 0.0, "count": 0, "price_sum": 0.0,
                "last": item.created_at, "name": item.product_name,
            })
            entry["sold"] += item.quantity_kg
            entry["revenue"] += item.total_after_discount
            entry["count"] += 1
            entry["price_sum"] += item.price_per_kg_at_order
            entry["last"] = max(entry["last"], item.created_at)

    results = []
    for pid, entry in totals.items():
        if pid not in names:
            logger.debug(f"Product {pid} no longer in catalog, using snapshot name")
        results.append(ProductAnalytics(
            product_id=pid,
            product_name=names.get(pid, entry["name"]),
            total_sold=entry["sold"],
            total_revenue=entry["revenue"],
            order_count=entry["count"],
            average_price=entry["price_sum"] / entry["count"],
            last_order_date=entry["last"],
        ))
    return sorted(results, key=lambda p: p.total_revenue, reverse=True)
