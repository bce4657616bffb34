"""CSV export of orders and the legacy compact order-items format."""

from __future__ import annotations

import csv
import io
from datetime import datetime
from typing import Optional

from rice_storefront.analytics.metrics import is_revenue_order
from rice_storefront.models.schemas import OrderWithDetails

CSV_HEADERS = [
    "Order ID",
    "Date",
    "Customer Name",
    "Phone",
    "Email",
    "Status",
    "Items",
    "Total Weight (kg)",
    "Total Price",
    "Address",
    "Coordinates",
]


def export_orders_csv(
    orders: list[OrderWithDetails],
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    status: Optional[str] = None,
) -> str:
    """Every cell quoted. Returned orders are left out, like every revenue figure."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADERS)

    for order in orders:
        if not is_revenue_order(order):
            continue
        if status and order.status.value != status:
            continue
        if start is not None and order.created_at < start:
            continue
        if end is not None and order.created_at > end:
            continue
        writer.writerow(_order_row(order))
    return buffer.getvalue()


def _order_row(order: OrderWithDetails) -> list:
    customer = order.customer
    address = order.address
    coordinates = ""
    if address is not None and address.latitude is not None and address.longitude is not None:
        coordinates = f"{address.latitude}, {address.longitude}"

    return [
        order.id,
        order.created_at.date().isoformat(),
        customer.full_name if customer else "",
        customer.phone if customer else "",
        customer.email if customer else "",
        order.status.value,
        "; ".join(f"{i.product_name} ({i.quantity_kg:g}kg)" for i in order.items),
        f"{order.total_weight_kg:g}",
        order.total_price,
        address.address_line if address else "",
        coordinates,
    ]


# ── Legacy "productId:Nkg,..." items string ──────────────


def format_order_items(items: list[tuple[str, float]]) -> str:
    return ",".join(f"{product_id}:{quantity:g}kg" for product_id, quantity in items)


def parse_order_items(value: str) -> list[tuple[str, float]]:
    """Inverse of format_order_items. Malformed entries raise ValueError."""
    parsed = []
    for entry in value.split(","):
        entry = entry.strip()
        if not entry:
            continue
        product_id, sep, quantity = entry.partition(":")
        if not sep or not product_id:
            raise ValueError(f"Malformed order item: {entry!r}")
        parsed.append((product_id.strip(), float(quantity.strip().removesuffix("kg"))))
    return parsed
