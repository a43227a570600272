"""Orders domain module.

This module turns the paginated Shopify order stream into sales rollups:

- **extract**: ``ShopifyOrderSource`` pages through raw orders.
- **aggregate**: ``aggregate_orders`` builds the summary, studio, daily and
  monthly rollups in a single pass.
- **marts**: DataFrames and the studio CSV export.
- **api**: ``get_sales_report`` and the JSON ``orders_response`` envelope.

Example:
    >>> from studio_sales.orders import aggregate_orders
    >>> report = aggregate_orders(orders)  # doctest: +SKIP
    >>> report.studios[0].name  # doctest: +SKIP
    'Studio X'
"""

from studio_sales.orders.aggregate import (
    OrderAggregator,
    SalesReport,
    aggregate_orders,
)
from studio_sales.orders.api import get_sales_report, orders_response

__all__ = [
    "OrderAggregator",
    "SalesReport",
    "aggregate_orders",
    "get_sales_report",
    "orders_response",
]
