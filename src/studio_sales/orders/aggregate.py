"""Aggregate raw orders into summary, studio, daily and monthly rollups.

This module reduces a forward-only stream of raw Shopify orders into a
``SalesReport`` in a single pass:

- **summary**: store-wide totals, one per run
- **studios**: one row per product line ("studio"), keyed by product title
- **by_date**: one row per ``YYYY-MM-DD`` of order creation
- **by_month**: one row per ``YYYY-MM`` of order creation

Daily and monthly ``net_sales`` are accumulated order by order, while the
summary and studio ``net_sales`` are derived once from the final totals.
Studio order counts come from a set of distinct order ids that only exists
until the aggregator is finalized.

Example:
    >>> from studio_sales.orders.aggregate import aggregate_orders
    >>> report = aggregate_orders([])
    >>> report.summary.order_count
    0
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Optional

from studio_sales.dates import DateRange
from studio_sales.exceptions import AggregationError
from studio_sales.utils import ensure_numeric, iter_nodes, money_amount, nested_title

logger = logging.getLogger(__name__)

UNKNOWN_PRODUCT = "Unknown Product"
UNKNOWN_DATE = "unknown"


@dataclass
class Summary:
    """Store-wide totals for one aggregation run."""

    total_gross_sales: float = 0.0
    total_discounts: float = 0.0
    total_refunds: float = 0.0
    total_taxes: float = 0.0
    total_shipping: float = 0.0
    net_sales: float = 0.0
    order_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalGrossSales": self.total_gross_sales,
            "totalDiscounts": self.total_discounts,
            "totalRefunds": self.total_refunds,
            "totalTaxes": self.total_taxes,
            "totalShipping": self.total_shipping,
            "netSales": self.net_sales,
            "orderCount": self.order_count,
        }


@dataclass
class StudioAggregate:
    """Totals for one product line.

    ``order_ids`` is only populated while accumulating; ``finalize`` turns
    it into ``order_count`` and drops it.
    """

    name: str
    gross_sales: float = 0.0
    discounts: float = 0.0
    refunds: float = 0.0
    taxes: float = 0.0
    quantity: float = 0.0
    net_sales: float = 0.0
    order_count: int = 0
    order_ids: Optional[set[str]] = field(default_factory=set, repr=False)

    def finalize(self) -> None:
        self.order_count = len(self.order_ids or ())
        self.order_ids = None
        self.net_sales = self.gross_sales - self.discounts - self.refunds

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "grossSales": self.gross_sales,
            "discounts": self.discounts,
            "refunds": self.refunds,
            "taxes": self.taxes,
            "quantity": self.quantity,
            "netSales": self.net_sales,
            "orderCount": self.order_count,
        }


@dataclass
class PeriodAggregate:
    """Totals for one calendar bucket (a day or a month)."""

    key: str
    gross_sales: float = 0.0
    discounts: float = 0.0
    refunds: float = 0.0
    taxes: float = 0.0
    net_sales: float = 0.0
    order_count: int = 0

    def add(self, gross: float, discounts: float, refunds: float, taxes: float) -> None:
        self.gross_sales += gross
        self.discounts += discounts
        self.refunds += refunds
        self.taxes += taxes
        self.net_sales += gross - discounts - refunds
        self.order_count += 1

    def merge(self, other: PeriodAggregate) -> None:
        self.gross_sales += other.gross_sales
        self.discounts += other.discounts
        self.refunds += other.refunds
        self.taxes += other.taxes
        self.net_sales += other.net_sales
        self.order_count += other.order_count


@dataclass
class DailyAggregate(PeriodAggregate):
    """Per-day totals; also tracks shipping."""

    shipping: float = 0.0

    @property
    def date(self) -> str:
        return self.key

    def merge(self, other: PeriodAggregate) -> None:
        super().merge(other)
        if isinstance(other, DailyAggregate):
            self.shipping += other.shipping

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.key,
            "grossSales": self.gross_sales,
            "discounts": self.discounts,
            "refunds": self.refunds,
            "taxes": self.taxes,
            "shipping": self.shipping,
            "netSales": self.net_sales,
            "orderCount": self.order_count,
        }


@dataclass
class MonthlyAggregate(PeriodAggregate):
    """Per-month totals."""

    @property
    def month(self) -> str:
        return self.key

    def to_dict(self) -> dict[str, Any]:
        return {
            "month": self.key,
            "grossSales": self.gross_sales,
            "discounts": self.discounts,
            "refunds": self.refunds,
            "taxes": self.taxes,
            "netSales": self.net_sales,
            "orderCount": self.order_count,
        }


@dataclass
class SalesReport:
    """Finalized output of one aggregation run.

    Attributes:
        summary: Store-wide totals.
        studios: Studio rollups sorted by net sales, highest first.
        by_date: Daily rollups sorted by date.
        by_month: Monthly rollups sorted by month.
        date_range: First and last order dates seen.
    """

    summary: Summary = field(default_factory=Summary)
    studios: list[StudioAggregate] = field(default_factory=list)
    by_date: list[DailyAggregate] = field(default_factory=list)
    by_month: list[MonthlyAggregate] = field(default_factory=list)
    date_range: DateRange = field(default_factory=DateRange)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the camelCase JSON payload."""
        return {
            "summary": self.summary.to_dict(),
            "studios": [s.to_dict() for s in self.studios],
            "byDate": [d.to_dict() for d in self.by_date],
            "byMonth": [m.to_dict() for m in self.by_month],
            "dateRange": self.date_range.to_dict(),
        }


def studio_key(line_item: Any) -> str:
    """Group key of a line item: product title, then item title, then a sentinel."""
    return (
        nested_title(line_item, "product", "title")
        or nested_title(line_item, "title")
        or UNKNOWN_PRODUCT
    )


def order_day(created_at: Any) -> str:
    """Truncate an order timestamp to its ``YYYY-MM-DD`` part.

    Missing or blank timestamps map to ``UNKNOWN_DATE``.
    """
    if isinstance(created_at, datetime):
        return created_at.date().isoformat()
    if isinstance(created_at, date):
        return created_at.isoformat()
    if isinstance(created_at, str) and created_at.strip():
        return created_at.strip().split("T")[0]
    return UNKNOWN_DATE


def _month_of(day: str) -> str:
    return UNKNOWN_DATE if day == UNKNOWN_DATE else day[:7]


class OrderAggregator:
    """Two-phase accumulator behind ``aggregate_orders``.

    Call ``add`` for each raw order (or ``merge`` partial aggregators built
    over consecutive slices of the stream, in order), then ``finalize`` once.
    """

    def __init__(self) -> None:
        self.summary = Summary()
        self.studios: dict[str, StudioAggregate] = {}
        self.daily: dict[str, DailyAggregate] = {}
        self.monthly: dict[str, MonthlyAggregate] = {}
        # Refund subtotals for studios that had no line items when the refund was seen
        self.pending_refunds: dict[str, float] = {}
        self.finalized = False

    def _check_open(self) -> None:
        if self.finalized:
            raise AggregationError("Aggregator was already finalized")

    def _studio(self, name: str) -> StudioAggregate:
        studio = self.studios.get(name)
        if studio is None:
            studio = self.studios[name] = StudioAggregate(name=name)
        return studio

    def _day(self, key: str) -> DailyAggregate:
        day = self.daily.get(key)
        if day is None:
            day = self.daily[key] = DailyAggregate(key=key)
        return day

    def _month(self, key: str) -> MonthlyAggregate:
        month = self.monthly.get(key)
        if month is None:
            month = self.monthly[key] = MonthlyAggregate(key=key)
        return month

    def add(self, order: Mapping[str, Any]) -> None:
        """Fold one raw order into the running totals."""
        self._check_open()
        if not isinstance(order, Mapping):
            order = {}

        day_key = order_day(order.get("createdAt"))
        month_key = _month_of(day_key)

        gross = money_amount(order, "totalPriceSet")
        discounts = money_amount(order, "totalDiscountsSet")
        refunds = money_amount(order, "totalRefundedSet")
        taxes = money_amount(order, "totalTaxSet")
        shipping = money_amount(order, "totalShippingPriceSet")

        summary = self.summary
        summary.total_gross_sales += gross
        summary.total_discounts += discounts
        summary.total_refunds += refunds
        summary.total_taxes += taxes
        summary.total_shipping += shipping
        summary.order_count += 1

        day = self._day(day_key)
        day.add(gross, discounts, refunds, taxes)
        day.shipping += shipping
        self._month(month_key).add(gross, discounts, refunds, taxes)

        order_id = str(order.get("id") or order.get("name") or f"order-{summary.order_count}")

        for item in iter_nodes(order.get("lineItems")):
            studio = self._studio(studio_key(item))
            studio.gross_sales += money_amount(item, "originalTotalSet")
            studio.discounts += sum(
                money_amount(alloc, "allocatedAmountSet")
                for alloc in iter_nodes(item.get("discountAllocations"))
            )
            studio.taxes += sum(
                money_amount(line, "priceSet") for line in iter_nodes(item.get("taxLines"))
            )
            studio.quantity += ensure_numeric(item.get("quantity"))
            studio.order_ids.add(order_id)  # type: ignore[union-attr]

        for refund in iter_nodes(order.get("refunds")):
            for refund_line in iter_nodes(refund.get("refundLineItems")):
                name = studio_key(refund_line.get("lineItem"))
                amount = money_amount(refund_line, "subtotalSet")
                studio = self.studios.get(name)
                if studio is None:
                    # May still match a studio of an aggregator merged in front of this one
                    self.pending_refunds[name] = self.pending_refunds.get(name, 0.0) + amount
                    continue
                studio.refunds += amount

    def merge(self, other: OrderAggregator) -> OrderAggregator:
        """Fold another un-finalized aggregator into this one.

        ``other`` is treated as covering the orders that come after the ones
        seen by this aggregator. Sums are added and studio order-id sets are
        unioned. Refunds that ``other`` could not match are applied to studios
        this aggregator already has; the rest stay pending. Merging partials
        over consecutive slices of a stream, in stream order, gives the same
        report as one pass over the whole stream.

        Raises:
            AggregationError: If either aggregator was already finalized.
        """
        self._check_open()
        other._check_open()

        s, o = self.summary, other.summary
        s.total_gross_sales += o.total_gross_sales
        s.total_discounts += o.total_discounts
        s.total_refunds += o.total_refunds
        s.total_taxes += o.total_taxes
        s.total_shipping += o.total_shipping
        s.order_count += o.order_count

        for name, amount in other.pending_refunds.items():
            studio = self.studios.get(name)
            if studio is not None:
                studio.refunds += amount
            else:
                self.pending_refunds[name] = self.pending_refunds.get(name, 0.0) + amount

        for name, theirs in other.studios.items():
            ours = self._studio(name)
            ours.gross_sales += theirs.gross_sales
            ours.discounts += theirs.discounts
            ours.refunds += theirs.refunds
            ours.taxes += theirs.taxes
            ours.quantity += theirs.quantity
            ours.order_ids |= theirs.order_ids or set()  # type: ignore[operator]
        for key, day in other.daily.items():
            self._day(key).merge(day)
        for key, month in other.monthly.items():
            self._month(key).merge(month)
        return self

    def finalize(self) -> SalesReport:
        """Derive counts and net sales, sort, and return the report."""
        self._check_open()
        self.finalized = True

        for name, amount in self.pending_refunds.items():
            logger.debug("Dropping refund of %.2f for studio %r with no line items", amount, name)
        self.pending_refunds = {}

        for studio in self.studios.values():
            studio.finalize()
        summary = self.summary
        summary.net_sales = (
            summary.total_gross_sales - summary.total_discounts - summary.total_refunds
        )

        studios = sorted(self.studios.values(), key=lambda s: s.net_sales, reverse=True)
        by_date = sorted(self.daily.values(), key=lambda d: d.key)
        by_month = sorted(self.monthly.values(), key=lambda m: m.key)

        dated = [d.key for d in by_date if d.key != UNKNOWN_DATE]
        date_range = DateRange(start=dated[0], end=dated[-1]) if dated else DateRange()

        return SalesReport(
            summary=summary,
            studios=studios,
            by_date=by_date,
            by_month=by_month,
            date_range=date_range,
        )


def aggregate_orders(orders: Iterable[Mapping[str, Any]]) -> SalesReport:
    """Reduce a stream of raw orders into a SalesReport.

    The input is consumed once, front to back, so it may be a generator over
    paginated API results.

    Args:
        orders: Raw Shopify order nodes.

    Returns:
        Finalized SalesReport. Empty input gives a zero summary, empty lists
        and an unbounded date range.
    """
    aggregator = OrderAggregator()
    for order in orders:
        aggregator.add(order)
    report = aggregator.finalize()
    logger.info(
        "Aggregated %d orders into %d studios, %d days, %d months",
        report.summary.order_count,
        len(report.studios),
        len(report.by_date),
        len(report.by_month),
    )
    return report
