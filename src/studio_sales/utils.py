"""Shared utilities for coercing raw order payloads.

Shopify returns money as strings nested in ``{"shopMoney": {"amount": ...}}``
envelopes, and any level of that envelope may be missing. The helpers here
are the only place where raw values are turned into numbers:

- Number parsing: ``ensure_numeric`` never raises and never returns NaN
- Payload walking: ``money_amount`` and ``iter_nodes`` tolerate missing levels

Examples:
    >>> from studio_sales.utils import ensure_numeric, money_amount
    >>> ensure_numeric("12.50")
    12.5
    >>> ensure_numeric("n/a")
    0.0
    >>> money_amount({"totalTaxSet": {"shopMoney": {"amount": "3.10"}}}, "totalTaxSet")
    3.1
"""

from __future__ import annotations

import math
import numbers
import re
from collections.abc import Iterator, Mapping
from decimal import Decimal
from typing import Any

import numpy as np

# Leading numeric prefix, the way parseFloat reads "12.5 USD" as 12.5
_NUMBER_PREFIX_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def ensure_numeric(value: Any) -> float:
    """Coerce any value into a finite float, defaulting to 0.

    Args:
        value: Value of unknown shape (string, number, None, mapping, ...).

    Returns:
        The parsed number, or ``0.0`` when the value is missing, not numeric,
        NaN or infinite.

    Examples:
        >>> ensure_numeric(3)
        3.0
        >>> ensure_numeric(" 7.25 ")
        7.25
        >>> ensure_numeric("42abc")
        42.0
        >>> ensure_numeric(None)
        0.0
        >>> ensure_numeric({"amount": "1"})
        0.0
    """
    if value is None or isinstance(value, (bool, np.bool_)):
        return 0.0
    if isinstance(value, (numbers.Real, np.number, Decimal)):
        try:
            num = float(value)
        except (TypeError, ValueError, OverflowError):
            return 0.0
        return num if math.isfinite(num) else 0.0
    if isinstance(value, (str, bytes)):
        text = value.decode("utf-8", "ignore") if isinstance(value, bytes) else value
        match = _NUMBER_PREFIX_RE.match(text.strip())
        if match is None:
            return 0.0
        try:
            num = float(match.group(0))
        except (ValueError, OverflowError):
            return 0.0
        return num if math.isfinite(num) else 0.0
    return 0.0


def money_amount(container: Any, key: str) -> float:
    """Read ``container[key].shopMoney.amount`` as a number.

    A plain scalar under ``key`` is accepted as well, so hand-built records
    may skip the money envelope.

    Args:
        container: Order, line item or refund mapping (may be None).
        key: Name of the money field, e.g. ``"totalPriceSet"``.

    Returns:
        The normalized amount, ``0.0`` if any level is missing.
    """
    if not isinstance(container, Mapping):
        return 0.0
    field = container.get(key)
    if isinstance(field, Mapping):
        shop_money = field.get("shopMoney")
        if isinstance(shop_money, Mapping):
            return ensure_numeric(shop_money.get("amount"))
        return ensure_numeric(field.get("amount"))
    return ensure_numeric(field)


def iter_nodes(connection: Any) -> Iterator[Mapping[str, Any]]:
    """Yield the nodes of a GraphQL connection or a plain list.

    Accepts ``{"edges": [{"node": {...}}]}``, a list of nodes, or nothing.
    Entries that are not mappings are skipped.
    """
    if isinstance(connection, Mapping):
        items = connection.get("edges") or []
    elif isinstance(connection, (list, tuple)):
        items = connection
    else:
        return
    for item in items:
        if isinstance(item, Mapping) and "node" in item:
            item = item["node"]
        if isinstance(item, Mapping):
            yield item


def nested_title(container: Any, *path: str) -> str:
    """Follow ``path`` through nested mappings and return a stripped title.

    Returns an empty string when any level is missing or the final value is
    not a string.
    """
    current = container
    for key in path:
        if not isinstance(current, Mapping):
            return ""
        current = current.get(key)
    return current.strip() if isinstance(current, str) else ""


def format_duration(seconds: float) -> str:
    """Format a duration in seconds as a human-readable string.

    Examples:
        >>> format_duration(90.5)
        '1m 30.5s'
        >>> format_duration(45.2)
        '45.2s'
    """
    mins, secs = divmod(seconds, 60.0)
    if mins >= 1:
        return f"{int(mins)}m {secs:04.1f}s"
    else:
        return f"{secs:.1f}s"
