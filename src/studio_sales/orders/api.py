"""Public API for order analytics.

This module provides the main entry points: ``get_sales_report`` runs the
pipeline (resolve range, stream orders, aggregate) and ``orders_response``
wraps it in the JSON envelope served by the web layer and printed by the
CLI. The envelope never lets an exception through; failures become
``{"success": false, "error": ..., "code": ...}``.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Optional

from studio_sales.dates import DateRange, resolve_range
from studio_sales.exceptions import SalesAPIError
from studio_sales.orders.aggregate import SalesReport, aggregate_orders

if TYPE_CHECKING:
    from studio_sales.orders.extract import OrderSource

logger = logging.getLogger(__name__)


def default_source() -> OrderSource:
    """Build a ShopifyOrderSource from environment configuration.

    Raises:
        ConfigError: If the Shopify credentials are not configured.
    """
    from studio_sales.config import ShopifyConfig
    from studio_sales.orders.extract import ShopifyOrderSource

    return ShopifyOrderSource(ShopifyConfig.from_env())


def get_sales_report(
    source: OrderSource,
    time_range: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    *,
    now: Optional[datetime] = None,
) -> tuple[DateRange, SalesReport]:
    """Fetch orders for the requested window and aggregate them.

    Args:
        source: Order stream to pull from.
        time_range: Symbolic window ("all", "30d", "90d", "ytd").
        start_date: Explicit start date (YYYY-MM-DD); overrides time_range.
        end_date: Explicit end date (YYYY-MM-DD).
        now: Reference instant for symbolic windows (tests).

    Returns:
        The resolved request window and the finalized SalesReport.

    Raises:
        ExtractionError: If the order source fails; partial results are
            discarded.
    """
    requested = resolve_range(time_range, start_date, end_date, now=now)
    logger.info("Fetching orders... start=%s end=%s", requested.start, requested.end)
    report = aggregate_orders(source.iter_orders(requested))
    return requested, report


def _generated_at() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def success_envelope(report: SalesReport) -> dict[str, Any]:
    """Wrap a report in the success envelope."""
    if report.summary.order_count == 0:
        report = SalesReport()
    return {
        "success": True,
        "metadata": {
            "totalOrders": report.summary.order_count,
            "dateRange": report.date_range.to_dict(),
            "generatedAt": _generated_at(),
        },
        "data": report.to_dict(),
    }


def error_envelope(exc: BaseException) -> tuple[dict[str, Any], int]:
    """Convert an exception into the failure envelope and its HTTP status."""
    code = getattr(exc, "code", None) or "INTERNAL_ERROR"
    status = getattr(exc, "status", None) if isinstance(exc, SalesAPIError) else None
    return (
        {
            "success": False,
            "error": str(exc) or "An unexpected error occurred",
            "code": code,
        },
        status or 500,
    )


def orders_response(
    source: Optional[OrderSource] = None,
    time_range: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    *,
    now: Optional[datetime] = None,
) -> tuple[dict[str, Any], int]:
    """Run the pipeline and return ``(body, http_status)``.

    Args:
        source: Order stream; defaults to a ShopifyOrderSource built from
            the environment.
        time_range: Symbolic window ("all", "30d", "90d", "ytd").
        start_date: Explicit start date; overrides time_range.
        end_date: Explicit end date.
        now: Reference instant for symbolic windows (tests).

    Returns:
        Tuple of the JSON-serializable body and the HTTP status code.

    Examples:
        >>> body, status = orders_response(source=my_source, time_range="30d")  # doctest: +SKIP
        >>> body["success"], status
        (True, 200)
    """
    try:
        if source is None:
            source = default_source()
        _, report = get_sales_report(source, time_range, start_date, end_date, now=now)
        if report.summary.order_count:
            logger.info("Processed %d orders", report.summary.order_count)
        return success_envelope(report), 200
    except Exception as e:
        logger.error("Error in orders API: %s", e, exc_info=not isinstance(e, SalesAPIError))
        return error_envelope(e)
