"""Shared fixtures: raw orders in Shopify Admin GraphQL shape."""

from __future__ import annotations

from typing import Any, Callable, Optional, Sequence

import pytest


def money(amount: Any) -> dict[str, Any]:
    """Wrap an amount the way the Admin API does (amounts are strings)."""
    return {"shopMoney": {"amount": None if amount is None else str(amount)}}


def line_item(
    studio: Optional[str],
    gross: Any,
    quantity: Any = 1,
    discounts: Sequence[Any] = (),
    taxes: Sequence[Any] = (),
    title: Optional[str] = None,
) -> dict[str, Any]:
    return {
        "id": f"gid://shopify/LineItem/{studio}-{gross}",
        "title": title if title is not None else f"{studio} item",
        "quantity": quantity,
        "product": {"id": "gid://shopify/Product/1", "title": studio} if studio else None,
        "originalTotalSet": money(gross),
        "discountAllocations": [{"allocatedAmountSet": money(d)} for d in discounts],
        "taxLines": [{"priceSet": money(t)} for t in taxes],
    }


OrderFactory = Callable[..., dict[str, Any]]


@pytest.fixture
def make_order() -> OrderFactory:
    """Return a builder for raw order nodes."""

    def _make(
        order_id: str = "gid://shopify/Order/1",
        created_at: Optional[str] = "2024-01-15T10:00:00Z",
        gross: Any = 0,
        discounts: Any = 0,
        refunds: Any = 0,
        taxes: Any = 0,
        shipping: Any = 0,
        line_items: Sequence[dict[str, Any]] = (),
        refund_lines: Sequence[tuple[Optional[str], Any]] = (),
    ) -> dict[str, Any]:
        return {
            "id": order_id,
            "name": "#" + order_id.rsplit("/", 1)[-1],
            "createdAt": created_at,
            "totalPriceSet": money(gross),
            "totalDiscountsSet": money(discounts),
            "totalRefundedSet": money(refunds),
            "totalTaxSet": money(taxes),
            "totalShippingPriceSet": money(shipping),
            "lineItems": {"edges": [{"node": item} for item in line_items]},
            "refunds": [
                {
                    "id": f"gid://shopify/Refund/{order_id}",
                    "createdAt": created_at,
                    "refundLineItems": {
                        "edges": [
                            {
                                "node": {
                                    "lineItem": {
                                        "id": "gid://shopify/LineItem/r",
                                        "product": {"title": studio} if studio else None,
                                    },
                                    "subtotalSet": money(amount),
                                }
                            }
                            for studio, amount in refund_lines
                        ]
                    },
                }
            ]
            if refund_lines
            else [],
        }

    return _make


@pytest.fixture
def two_orders(make_order: OrderFactory) -> list[dict[str, Any]]:
    """Order A and Order B, both for "Studio X", one month apart."""
    order_a = make_order(
        order_id="gid://shopify/Order/1001",
        created_at="2024-01-15T10:00:00Z",
        gross=100,
        discounts=10,
        refunds=0,
        taxes=5,
        line_items=[line_item("Studio X", 100, quantity=2)],
    )
    order_b = make_order(
        order_id="gid://shopify/Order/1002",
        created_at="2024-02-03T18:30:00Z",
        gross=50,
        discounts=0,
        refunds=20,
        taxes=0,
        line_items=[line_item("Studio X", 50, quantity=1)],
    )
    return [order_a, order_b]


@pytest.fixture
def make_line_item() -> Callable[..., dict[str, Any]]:
    """Return a builder for raw line-item nodes."""
    return line_item
