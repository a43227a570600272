"""Tests for the response envelope, the HTTP app, the CSV export and the CLI."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Iterator, Optional

import pandas as pd
import pytest
from fastapi.testclient import TestClient

from studio_sales import cli
from studio_sales.dates import DateRange
from studio_sales.exceptions import ConfigError, ExtractionError
from studio_sales.orders import aggregate_orders, orders_response
from studio_sales.orders.marts import EXPORT_COLUMNS, export_studios_csv
from studio_sales.web import ORDERS_ENDPOINT, create_app

NOW = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


class ListSource:
    """In-memory order source that remembers the ranges it was asked for."""

    def __init__(self, orders: list[dict[str, Any]], error: Optional[Exception] = None) -> None:
        self.orders = orders
        self.error = error
        self.ranges: list[Optional[DateRange]] = []

    def iter_orders(self, date_range: Optional[DateRange] = None) -> Iterator[dict[str, Any]]:
        self.ranges.append(date_range)
        yield from self.orders
        if self.error is not None:
            raise self.error


def test_success_envelope(two_orders: list[dict]) -> None:
    body, status = orders_response(ListSource(two_orders), "all")
    assert status == 200
    assert body["success"] is True
    assert body["metadata"]["totalOrders"] == 2
    assert body["metadata"]["dateRange"] == {"start": "2024-01-15", "end": "2024-02-03"}
    assert body["metadata"]["generatedAt"].endswith("Z")
    assert body["data"]["summary"]["netSales"] == 120
    assert body["data"]["studios"][0]["name"] == "Studio X"
    # The body is plain JSON.
    json.dumps(body)


def test_envelope_passes_resolved_range() -> None:
    source = ListSource([])
    orders_response(source, "30d", now=NOW)
    assert source.ranges == [DateRange("2024-02-14", "2024-03-15")]


def test_empty_result() -> None:
    body, status = orders_response(ListSource([]), "ytd", now=NOW)
    assert status == 200
    assert body["metadata"]["totalOrders"] == 0
    assert body["metadata"]["dateRange"] == {"start": None, "end": None}
    assert body["data"]["studios"] == []
    assert body["data"]["byDate"] == []
    assert body["data"]["summary"]["orderCount"] == 0


def test_upstream_failure_discards_partial_results(two_orders: list[dict]) -> None:
    """A failure on a later page yields only the failure envelope."""
    error = ExtractionError("Shopify GraphQL Error", code="SHOPIFY_GRAPHQL_ERROR")
    body, status = orders_response(ListSource(two_orders, error=error))
    assert status == 502
    assert body == {
        "success": False,
        "error": "Shopify GraphQL Error",
        "code": "SHOPIFY_GRAPHQL_ERROR",
    }


def test_unexpected_failure_is_internal_error() -> None:
    body, status = orders_response(ListSource([], error=RuntimeError()))
    assert status == 500
    assert body["code"] == "INTERNAL_ERROR"
    assert body["error"] == "An unexpected error occurred"


def test_missing_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("SHOPIFY_STORE_DOMAIN", raising=False)
    monkeypatch.delenv("SHOPIFY_ADMIN_API_ACCESS_TOKEN", raising=False)
    body, status = orders_response()
    assert status == 500
    assert body["success"] is False
    assert body["code"] == "CONFIG_ERROR"


def test_http_endpoint(two_orders: list[dict]) -> None:
    source = ListSource(two_orders)
    client = TestClient(create_app(source_factory=lambda: source))

    resp = client.get(ORDERS_ENDPOINT, params={"startDate": "2024-01-01", "endDate": "2024-02-29"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["data"]["byMonth"][0]["month"] == "2024-01"
    assert source.ranges == [DateRange("2024-01-01", "2024-02-29")]


def test_http_endpoint_range_param() -> None:
    source = ListSource([])
    client = TestClient(create_app(source_factory=lambda: source))

    resp = client.get(ORDERS_ENDPOINT, params={"range": "all"})

    assert resp.status_code == 200
    assert resp.json()["metadata"]["totalOrders"] == 0
    assert source.ranges == [DateRange()]


def test_http_endpoint_failure() -> None:
    def broken() -> ListSource:
        raise ConfigError("SHOPIFY_STORE_DOMAIN environment variable must be set.")

    client = TestClient(create_app(source_factory=broken))
    resp = client.get(ORDERS_ENDPOINT)

    assert resp.status_code == 500
    assert resp.json()["code"] == "CONFIG_ERROR"


def test_healthz() -> None:
    client = TestClient(create_app(source_factory=lambda: ListSource([])))
    assert client.get("/healthz").json() == {"status": "ok"}


def test_export_studios_csv(tmp_path, two_orders: list[dict]) -> None:
    out = export_studios_csv(aggregate_orders(two_orders), tmp_path / "out" / "studios.csv")

    assert out.exists()
    assert out.read_text(encoding="utf-8").splitlines()[0] == ",".join(EXPORT_COLUMNS)
    df = pd.read_csv(out)
    assert len(df) == 1
    row = df.iloc[0]
    assert row["Studio"] == "Studio X"
    assert row["Orders"] == 2
    assert row["Quantity"] == 3
    assert row["Net Sales"] == 150


def test_export_skips_studios_without_positive_net_sales(
    tmp_path, make_order, make_line_item
) -> None:
    """A fully refunded studio is left out of the export."""
    order = make_order(
        gross=60,
        refunds=10,
        line_items=[make_line_item("Good", 50), make_line_item("Refunded", 10)],
        refund_lines=[("Refunded", 10)],
    )
    report = aggregate_orders([order])
    assert {s.name for s in report.studios} == {"Good", "Refunded"}

    df = pd.read_csv(export_studios_csv(report, tmp_path / "studios.csv"))

    assert df["Studio"].tolist() == ["Good"]


def test_export_empty_report(tmp_path) -> None:
    out = export_studios_csv(aggregate_orders([]), tmp_path / "empty.csv")
    assert out.read_text(encoding="utf-8").strip() == ",".join(EXPORT_COLUMNS)


def test_cli_report_json(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str], two_orders: list[dict]
) -> None:
    monkeypatch.setattr(cli, "default_source", lambda: ListSource(two_orders))

    assert cli.main(["report", "--json"]) == 0

    body = json.loads(capsys.readouterr().out)
    assert body["success"] is True
    assert body["metadata"]["totalOrders"] == 2


def test_cli_report_console_and_export(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
    tmp_path,
    two_orders: list[dict],
) -> None:
    monkeypatch.setattr(cli, "default_source", lambda: ListSource(two_orders))
    target = tmp_path / "studios.csv"

    assert cli.main(["report", "--range", "30d", "--export", str(target)]) == 0

    captured = capsys.readouterr()
    assert "Studio X" in captured.out
    assert "Wrote:" in captured.err
    assert target.exists()


def test_cli_reports_errors(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    def broken() -> ListSource:
        raise ConfigError("SHOPIFY_STORE_DOMAIN environment variable must be set.")

    monkeypatch.setattr(cli, "default_source", broken)

    assert cli.main(["report"]) == 2
    assert "ERROR [CONFIG_ERROR]" in capsys.readouterr().err


def test_cli_rejects_unknown_range() -> None:
    with pytest.raises(SystemExit):
        cli.main(["report", "--range", "7d"])
