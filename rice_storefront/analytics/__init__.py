"""Analytics — admin metrics, sales channel attribution, CSV export."""

from rice_storefront.analytics.metrics import (
    is_revenue_order,
    total_revenue,
    order_analytics,
    dashboard_stats,
    customer_stats,
    product_analytics,
)
from rice_storefront.analytics.channels import (
    attribute_channel,
    channel_from_name,
    staff_performance,
)
from rice_storefront.analytics.export import (
    export_orders_csv,
    format_order_items,
    parse_order_items,
)

__all__ = [
    "is_revenue_order",
    "total_revenue",
    "order_analytics",
    "dashboard_stats",
    "customer_stats",
    "product_analytics",
    "attribute_channel",
    "channel_from_name",
    "staff_performance",
    "export_orders_csv",
    "format_order_items",
    "parse_order_items",
]
