"""Tabular views of a SalesReport and the studio CSV export.

This module converts the rollups of a finalized report into DataFrames for
analysis and writes the studio export table consumed by spreadsheets.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Union

import pandas as pd

from studio_sales.orders.aggregate import SalesReport

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = [
    "Studio",
    "Orders",
    "Quantity",
    "Gross Sales",
    "Discounts",
    "Refunds",
    "Taxes",
    "Net Sales",
]


def studios_frame(report: SalesReport) -> pd.DataFrame:
    """One row per studio, in report order (net sales, highest first)."""
    return pd.DataFrame(
        [s.to_dict() for s in report.studios],
        columns=[
            "name",
            "orderCount",
            "quantity",
            "grossSales",
            "discounts",
            "refunds",
            "taxes",
            "netSales",
        ],
    )


def daily_frame(report: SalesReport) -> pd.DataFrame:
    """One row per order date, ascending."""
    return pd.DataFrame(
        [d.to_dict() for d in report.by_date],
        columns=[
            "date",
            "grossSales",
            "discounts",
            "refunds",
            "taxes",
            "shipping",
            "netSales",
            "orderCount",
        ],
    )


def monthly_frame(report: SalesReport) -> pd.DataFrame:
    """One row per order month, ascending."""
    return pd.DataFrame(
        [m.to_dict() for m in report.by_month],
        columns=["month", "grossSales", "discounts", "refunds", "taxes", "netSales", "orderCount"],
    )


def export_frame(report: SalesReport) -> pd.DataFrame:
    """Studio table with the export headers.

    Only studios with positive net sales are exported, in report order.
    Quantities that are whole numbers are written without a decimal part.
    """
    df = studios_frame(report)
    df = df.loc[df["netSales"] > 0].reset_index(drop=True)
    df.columns = EXPORT_COLUMNS
    if not df.empty and (df["Quantity"] % 1 == 0).all():
        df["Quantity"] = df["Quantity"].astype("int64")
    return df


def export_studios_csv(report: SalesReport, output_csv: Union[str, Path]) -> Path:
    """Write the studio export table as CSV.

    Args:
        report: Finalized SalesReport.
        output_csv: Destination path. Parent directories are created.

    Returns:
        Path of the written file.
    """
    out_path = Path(output_csv)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    df = export_frame(report)
    df.to_csv(out_path, index=False, encoding="utf-8")
    logger.info("Wrote %d studio rows to %s", len(df), out_path)
    return out_path
