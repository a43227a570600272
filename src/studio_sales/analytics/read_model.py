"""Chart-ready read model derived from an aggregated sales payload.

``derive_read_model`` is a pure function over the ``data`` member of the
orders JSON envelope (or a ``SalesReport``). Every number is passed through
``ensure_numeric`` again, so a malformed or hand-edited payload degrades to
zeros instead of raising. Order counts are floored at 1 so that per-order
averages never divide by zero.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Union

from studio_sales.dates import month_label
from studio_sales.orders.aggregate import SalesReport
from studio_sales.utils import ensure_numeric

logger = logging.getLogger(__name__)

UNKNOWN_STUDIO = "Unknown Studio"

WATERFALL_GROSS = "Gross Sales"
WATERFALL_DISCOUNTS = "Discounts"
WATERFALL_REFUNDS = "Refunds"
WATERFALL_TAXES = "Taxes"
WATERFALL_NET = "Net Sales"


@dataclass
class SummaryMetrics:
    """Store-wide totals with the order count floored at 1."""

    total_gross_sales: float = 0.0
    total_discounts: float = 0.0
    total_refunds: float = 0.0
    total_taxes: float = 0.0
    total_shipping: float = 0.0
    net_sales: float = 0.0
    order_count: float = 1.0

    @property
    def avg_order_value(self) -> float:
        return self.net_sales / self.order_count


@dataclass
class StudioMetrics:
    """A studio row with derived per-order and rate metrics."""

    name: str
    net_sales: float
    gross_sales: float
    order_count: float
    quantity: float
    discounts: float
    refunds: float
    taxes: float
    avg_order_value: float
    discount_rate: float
    refund_rate: float


@dataclass
class MonthlyRevenuePoint:
    """One labelled month of the revenue series."""

    month: str
    gross: float
    net: float
    orders: float
    discounts: float
    refunds: float


@dataclass
class WaterfallStep:
    """A named gross-to-net step; deductions are negative."""

    name: str
    value: float


@dataclass
class DonutSlice:
    """A studio share of total net sales, in percent."""

    name: str
    value: float
    orders: float
    percentage: float


@dataclass
class ReadModel:
    """Everything the dashboard renders for one report."""

    summary: SummaryMetrics = field(default_factory=SummaryMetrics)
    valid_studios: list[StudioMetrics] = field(default_factory=list)
    monthly_revenue: list[MonthlyRevenuePoint] = field(default_factory=list)
    waterfall_data: list[WaterfallStep] = field(default_factory=list)
    studio_donut_data: list[DonutSlice] = field(default_factory=list)
    total_net_sales: float = 1.0


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _rows(value: Any) -> list[Mapping[str, Any]]:
    if not isinstance(value, (list, tuple)):
        return []
    return [row for row in value if isinstance(row, Mapping)]


def _summary_metrics(raw: Mapping[str, Any]) -> SummaryMetrics:
    return SummaryMetrics(
        total_gross_sales=ensure_numeric(raw.get("totalGrossSales")),
        total_discounts=ensure_numeric(raw.get("totalDiscounts")),
        total_refunds=ensure_numeric(raw.get("totalRefunds")),
        total_taxes=ensure_numeric(raw.get("totalTaxes")),
        total_shipping=ensure_numeric(raw.get("totalShipping")),
        net_sales=ensure_numeric(raw.get("netSales")),
        order_count=max(1.0, ensure_numeric(raw.get("orderCount"))),
    )


def studio_metrics(raw: Mapping[str, Any]) -> StudioMetrics:
    """Re-normalize one studio row and derive its averages and rates."""
    net_sales = ensure_numeric(raw.get("netSales"))
    gross_sales = ensure_numeric(raw.get("grossSales"))
    order_count = max(1.0, ensure_numeric(raw.get("orderCount")))
    discounts = ensure_numeric(raw.get("discounts"))
    refunds = ensure_numeric(raw.get("refunds"))
    name = raw.get("name")

    return StudioMetrics(
        name=name if isinstance(name, str) and name.strip() else UNKNOWN_STUDIO,
        net_sales=net_sales,
        gross_sales=gross_sales,
        order_count=order_count,
        quantity=ensure_numeric(raw.get("quantity")),
        discounts=discounts,
        refunds=refunds,
        taxes=ensure_numeric(raw.get("taxes")),
        avg_order_value=net_sales / order_count,
        discount_rate=(discounts / gross_sales) * 100 if gross_sales > 0 else 0.0,
        refund_rate=(refunds / gross_sales) * 100 if gross_sales > 0 else 0.0,
    )


def _monthly_point(raw: Mapping[str, Any]) -> MonthlyRevenuePoint | None:
    label = month_label(raw.get("month"))
    if label is None:
        logger.debug("Dropping monthly row with unparseable month %r", raw.get("month"))
        return None
    return MonthlyRevenuePoint(
        month=label,
        gross=ensure_numeric(raw.get("grossSales")),
        net=ensure_numeric(raw.get("netSales")),
        orders=ensure_numeric(raw.get("orderCount")),
        discounts=ensure_numeric(raw.get("discounts")),
        refunds=ensure_numeric(raw.get("refunds")),
    )


def waterfall_steps(summary: SummaryMetrics) -> list[WaterfallStep]:
    """Gross to net in five steps; the last one is an absolute total."""
    return [
        WaterfallStep(WATERFALL_GROSS, summary.total_gross_sales),
        WaterfallStep(WATERFALL_DISCOUNTS, -abs(summary.total_discounts)),
        WaterfallStep(WATERFALL_REFUNDS, -abs(summary.total_refunds)),
        WaterfallStep(WATERFALL_TAXES, summary.total_taxes),
        WaterfallStep(WATERFALL_NET, summary.net_sales),
    ]


def derive_read_model(payload: Union[Mapping[str, Any], SalesReport, None]) -> ReadModel:
    """Build the dashboard read model from an aggregated payload.

    Args:
        payload: The ``data`` member of the orders envelope (camelCase keys)
            or a SalesReport. Anything else yields an empty read model.

    Returns:
        ReadModel with studios filtered to positive net sales and sorted
        highest first, labelled monthly revenue, waterfall steps and donut
        shares.

    Examples:
        >>> model = derive_read_model({"summary": {"netSales": "120"}, "studios": []})
        >>> model.summary.net_sales, model.summary.order_count
        (120.0, 1.0)
    """
    if isinstance(payload, SalesReport):
        payload = payload.to_dict()
    if not isinstance(payload, Mapping):
        return ReadModel()

    summary = _summary_metrics(_mapping(payload.get("summary")))

    valid_studios = sorted(
        (s for s in map(studio_metrics, _rows(payload.get("studios"))) if s.net_sales > 0),
        key=lambda s: s.net_sales,
        reverse=True,
    )

    total_net_sales = sum(s.net_sales for s in valid_studios) or summary.net_sales or 1.0

    monthly_revenue = [
        point
        for point in map(_monthly_point, _rows(payload.get("byMonth")))
        if point is not None
    ]

    studio_donut_data = [
        DonutSlice(
            name=s.name,
            value=s.net_sales,
            orders=s.order_count,
            percentage=round(s.net_sales / total_net_sales * 100, 1),
        )
        for s in valid_studios
    ]

    return ReadModel(
        summary=summary,
        valid_studios=valid_studios,
        monthly_revenue=monthly_revenue,
        waterfall_data=waterfall_steps(summary),
        studio_donut_data=studio_donut_data,
        total_net_sales=total_net_sales,
    )
