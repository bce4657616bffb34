"""
Sales channel attribution for staff performance.

Customers carry an explicit sales_channel. Older records don't, and staff
marked their orders by suffixing the customer name ("Ali - S", "Ali (K)",
"S Ahmed"); those are still attributed by pattern, S before K.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Optional

from rice_storefront.models.enums import SalesChannel
from rice_storefront.models.schemas import ChannelStats, Customer, StaffPerformance
from rice_storefront.analytics.metrics import is_revenue_order

_S_AGENT_RE = re.compile(r"\s*-\s*[sS]\s*|\s*\(\s*[sS]\s*\)\s*|\b[sS]\b")
_K_AGENT_RE = re.compile(r"\s*-\s*[kK]\s*|\s*\(\s*[kK]\s*\)\s*|\b[kK]\b")


def channel_from_name(name: str) -> SalesChannel:
    name = name or ""
    if _S_AGENT_RE.search(name):
        return SalesChannel.S_AGENT
    if _K_AGENT_RE.search(name):
        return SalesChannel.K_AGENT
    return SalesChannel.DIRECT


def attribute_channel(customer: Optional[Customer]) -> SalesChannel:
    if customer is None:
        return SalesChannel.DIRECT
    if customer.sales_channel is not None:
        return SalesChannel(customer.sales_channel)
    return channel_from_name(customer.full_name)


def staff_performance(
    orders: list,
    customers: dict[str, Customer],
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> StaffPerformance:
    """Orders, revenue and weight per channel. Returned orders are skipped."""
    result = StaffPerformance()
    for order in orders:
        if not is_revenue_order(order):
            continue
        if start is not None and order.created_at < start:
            continue
        if end is not None and order.created_at > end:
            continue

        channel = attribute_channel(customers.get(order.customer_id))
        for stats in (getattr(result, channel.value), result.total):
            _add(stats, order)
    return result


def _add(stats: ChannelStats, order) -> None:
    stats.total_orders += 1
    stats.total_revenue += order.total_price
    stats.total_weight += order.total_weight_kg
