"""Command-line interface for Studio Sales.

Examples:
  # Last 30 days, console summary
  studio-sales report --range 30d

  # Explicit window, export the studio table and print the JSON envelope
  studio-sales report --start-date 2024-01-01 --end-date 2024-03-31 \
      --export ./studio_sales.csv --json

  # Serve the orders endpoint
  studio-sales serve --port 8000

Environment:
  SHOPIFY_STORE_DOMAIN, SHOPIFY_ADMIN_API_ACCESS_TOKEN (required), see
  studio_sales.config for the optional settings.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from collections.abc import Sequence
from pathlib import Path

from studio_sales.analytics.formatters import format_report_for_console
from studio_sales.analytics.read_model import derive_read_model
from studio_sales.dates import TIME_RANGES
from studio_sales.exceptions import SalesAPIError
from studio_sales.orders.aggregate import SalesReport
from studio_sales.orders.api import default_source, get_sales_report, success_envelope
from studio_sales.orders.marts import export_studios_csv
from studio_sales.utils import format_duration

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="studio-sales",
        description="Aggregate Shopify orders into studio, daily and monthly sales analytics.",
    )
    p.add_argument(
        "--verbose",
        "--debug",
        "-v",
        action="store_true",
        dest="verbose",
        help="Verbose/debug logging output.",
    )
    sub = p.add_subparsers(dest="command", required=True)

    report = sub.add_parser("report", help="Fetch orders and print a sales report.")
    report.add_argument(
        "--range",
        dest="time_range",
        default="all",
        choices=TIME_RANGES,
        help="Symbolic window (default: all). Ignored when --start-date is given.",
    )
    report.add_argument("--start-date", default=None, help="Start date YYYY-MM-DD (inclusive).")
    report.add_argument("--end-date", default=None, help="End date YYYY-MM-DD (inclusive).")
    report.add_argument(
        "--export",
        default=None,
        help="Write the studio table as CSV to this path.",
    )
    report.add_argument(
        "--json",
        action="store_true",
        help="Print the JSON envelope instead of the console summary.",
    )

    serve = sub.add_parser("serve", help="Serve the orders endpoint over HTTP.")
    serve.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1).")
    serve.add_argument("--port", type=int, default=8000, help="Port (default: 8000).")
    return p


def _run_report(args: argparse.Namespace) -> int:
    t0 = time.perf_counter()
    source = default_source()
    _, report = get_sales_report(source, args.time_range, args.start_date, args.end_date)
    logger.info("Report built in %s", format_duration(time.perf_counter() - t0))

    if args.export:
        out = export_studios_csv(report, Path(args.export))
        print(f"Wrote: {out}", file=sys.stderr)

    if args.json:
        print(json.dumps(success_envelope(report), indent=2))
    else:
        print(_console_text(report))
    return 0


def _console_text(report: SalesReport) -> str:
    model = derive_read_model(report)
    return format_report_for_console(model, report.summary.order_count)


def _run_serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("studio_sales.web:app", host=args.host, port=args.port)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(levelname)s: %(message)s",
    )

    try:
        if args.command == "serve":
            return _run_serve(args)
        return _run_report(args)
    except SalesAPIError as e:
        print(f"ERROR [{e.code}]: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
