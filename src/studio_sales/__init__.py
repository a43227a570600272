"""Studio Sales - Shopify order aggregation and sales analytics.

This package turns a paginated stream of Shopify orders into sales
analytics sliced by product line ("studio"), by day and by month:

- **Source**: raw order nodes, fetched page by page
- **Rollups**: summary, studio, daily and monthly aggregates
- **Read model**: chart-ready studios, monthly series, waterfall and shares

Module Structure:
    studio_sales.orders: Order stream, aggregation, marts and JSON envelope
    studio_sales.analytics: Read model, waterfall layout, console formatting
    studio_sales.dates: Date-range resolution
    studio_sales.config: ShopifyConfig configuration
    studio_sales.web: FastAPI app serving the orders endpoint

Quick Start:
    >>> from studio_sales import ShopifyConfig
    >>> from studio_sales.orders import get_sales_report
    >>> from studio_sales.orders.extract import ShopifyOrderSource
    >>> from studio_sales.analytics import derive_read_model
    >>>
    >>> source = ShopifyOrderSource(ShopifyConfig.from_env())
    >>> window, report = get_sales_report(source, time_range="30d")
    >>> model = derive_read_model(report)
    >>> print(model.studio_donut_data[:3])
"""

__version__ = "0.1.0"

from studio_sales.config import ShopifyConfig
from studio_sales.exceptions import (
    AggregationError,
    ConfigError,
    ETLError,
    ExtractionError,
    SalesAPIError,
)

__all__ = [
    "AggregationError",
    "ConfigError",
    "ETLError",
    "ExtractionError",
    "SalesAPIError",
    "ShopifyConfig",
    "__version__",
]
