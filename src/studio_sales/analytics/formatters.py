"""Console output formatting utilities."""

from __future__ import annotations

from studio_sales.analytics.read_model import ReadModel
from studio_sales.analytics.waterfall import layout_waterfall


def format_currency(value: float) -> str:
    """Format a number as whole US dollars, e.g. ``$1,235`` or ``-$40``."""
    amount = f"${abs(value):,.0f}"
    return f"-{amount}" if round(value) < 0 else amount


def format_percentage(value: float) -> str:
    """Format a number as a percentage with one decimal, e.g. ``12.3%``."""
    return f"{value:.1f}%"


def format_report_for_console(model: ReadModel, total_orders: int) -> str:
    """Build a human-readable summary of a read model.

    Args:
        model: Read model from ``derive_read_model``.
        total_orders: Raw number of orders aggregated (not floored).

    Returns:
        Multi-line text for console output.
    """
    if total_orders == 0:
        return "No orders found for the selected range."

    summary = model.summary
    lines = ["Sales Report", "=" * 60]
    lines.append(f"Orders:          {total_orders:,}")
    lines.append(f"Avg order value: {format_currency(summary.avg_order_value)}")
    lines.append(f"Shipping:        {format_currency(summary.total_shipping)}")
    lines.append("")

    lines.append("Gross to net")
    lines.append("-" * 60)
    for bar in layout_waterfall(model.waterfall_data):
        lines.append(f"  {bar.name:<14}{format_currency(bar.display_value):>16}")
    lines.append("")

    lines.append("Studios")
    lines.append("-" * 60)
    for studio, share in zip(model.valid_studios, model.studio_donut_data):
        lines.append(
            f"  {studio.name[:28]:<28}{format_currency(studio.net_sales):>12}"
            f"{format_percentage(share.percentage):>8}  ({int(studio.order_count)} orders)"
        )
    if model.monthly_revenue:
        lines.append("")
        lines.append("Monthly net revenue")
        lines.append("-" * 60)
        for point in model.monthly_revenue:
            lines.append(f"  {point.month:<10}{format_currency(point.net):>16}")
    return "\n".join(lines)
