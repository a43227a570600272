"""Order stream source: page through orders from the Shopify Admin API.

This module handles the transport side of the pipeline. Orders are pulled
one page at a time; page n+1 is requested with the cursor of page n only
after page n has been handed to the consumer, so the aggregator never needs
the full dataset in memory.

Environment:
  SHOPIFY_STORE_DOMAIN / SHOPIFY_ADMIN_API_ACCESS_TOKEN (see studio_sales.config)

Notes:
- Retries on 429/5xx belong to the HTTP session, not to the pipeline.
- Any transport or GraphQL failure surfaces as ExtractionError.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from studio_sales.config import ShopifyConfig
from studio_sales.dates import DateRange
from studio_sales.exceptions import ExtractionError

logger = logging.getLogger(__name__)

ORDERS_QUERY_TEMPLATE = """
query getOrders($first: Int!, $after: String%(query_var)s) {
  orders(first: $first, after: $after%(query_arg)s) {
    edges {
      node {
        id
        name
        createdAt
        totalPriceSet { shopMoney { amount currencyCode } }
        totalDiscountsSet { shopMoney { amount } }
        totalRefundedSet { shopMoney { amount } }
        totalTaxSet { shopMoney { amount } }
        totalShippingPriceSet { shopMoney { amount } }
        lineItems(first: 50) {
          edges {
            node {
              id
              title
              quantity
              product { id title }
              originalTotalSet { shopMoney { amount } }
              discountAllocations { allocatedAmountSet { shopMoney { amount } } }
              taxLines { priceSet { shopMoney { amount } } }
            }
          }
        }
        refunds {
          id
          createdAt
          refundLineItems(first: 50) {
            edges {
              node {
                lineItem { id title product { title } }
                subtotalSet { shopMoney { amount } }
              }
            }
          }
        }
      }
    }
    pageInfo { hasNextPage endCursor }
  }
}
"""


@dataclass
class OrderPage:
    """One page of raw order records.

    Attributes:
        records: Raw order nodes in API order.
        next_cursor: Cursor to request the following page, if any.
        has_more: False once the stream is exhausted.
    """

    records: list[dict[str, Any]] = field(default_factory=list)
    next_cursor: Optional[str] = None
    has_more: bool = False


class OrderSource(Protocol):
    """Anything that can stream raw orders for a date range.

    ``ShopifyOrderSource`` is the production implementation; tests pass
    in-memory stand-ins.
    """

    def iter_orders(self, date_range: Optional[DateRange] = None) -> Iterator[dict[str, Any]]:
        ...


def build_search_query(date_range: Optional[DateRange]) -> str:
    """Build the Shopify search filter for an inclusive created_at range.

    Examples:
        >>> build_search_query(DateRange("2024-01-01", "2024-01-31"))
        'created_at:>=2024-01-01 AND created_at:<=2024-01-31'
        >>> build_search_query(DateRange(None, "2024-01-31"))
        'created_at:<=2024-01-31'
    """
    if date_range is None:
        return ""
    clauses = []
    if date_range.start:
        clauses.append(f"created_at:>={date_range.start}")
    if date_range.end:
        clauses.append(f"created_at:<={date_range.end}")
    return " AND ".join(clauses)


def build_orders_query(search: str) -> str:
    """Render the orders query, adding the ``$query`` variable when filtering."""
    if search:
        return ORDERS_QUERY_TEMPLATE % {
            "query_var": ", $query: String",
            "query_arg": ", query: $query",
        }
    return ORDERS_QUERY_TEMPLATE % {"query_var": "", "query_arg": ""}


def make_session(config: ShopifyConfig) -> requests.Session:
    """Create a requests Session with retry logic and default timeout.

    Configures the session with:
    - JSON content type and the Admin API access token header
    - Retry adapter for HTTP/HTTPS with exponential backoff
    - Default timeout for all requests
    - Retries on 429, 500, 502, 503, 504 status codes

    Args:
        config: Shopify configuration (token, timeout, retries).

    Returns:
        Configured requests.Session object.
    """
    s = requests.Session()
    s.headers.update(
        {
            "Content-Type": "application/json",
            "X-Shopify-Access-Token": config.access_token,
        }
    )
    retry = Retry(
        total=config.retries,
        connect=config.retries,
        read=config.retries,
        status=config.retries,
        backoff_factor=0.8,  # 0.8, 1.6, 3.2, ...
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=frozenset({"GET", "POST"}),
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry)
    s.mount("http://", adapter)
    s.mount("https://", adapter)
    # Default timeouts via a wrapper
    orig_request = s.request

    def timed_request(method: str, url: str, **kwargs: Any) -> requests.Response:
        kwargs.setdefault("timeout", config.timeout)
        return orig_request(method, url, **kwargs)

    s.request = timed_request  # type: ignore[method-assign]
    return s


class ShopifyOrderSource:
    """Pull-based source of raw orders from the Shopify Admin GraphQL API.

    Example:
        >>> source = ShopifyOrderSource(ShopifyConfig.from_env())  # doctest: +SKIP
        >>> for order in source.iter_orders(DateRange("2024-01-01", None)):  # doctest: +SKIP
        ...     print(order["name"])
    """

    def __init__(
        self,
        config: ShopifyConfig,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.config = config
        self.session = session if session is not None else make_session(config)

    def execute(self, query: str, variables: Mapping[str, Any]) -> dict[str, Any]:
        """Run one GraphQL request and return its ``data`` member.

        Raises:
            ExtractionError: On network failures, non-2xx answers, GraphQL
                ``errors`` or a body that is not a JSON object.
        """
        try:
            resp = self.session.post(
                self.config.graphql_url,
                json={"query": query, "variables": dict(variables)},
            )
        except requests.RequestException as e:
            logger.error("Shopify API request failed: %s", e)
            raise ExtractionError(f"Shopify API request failed: {e}") from e

        if not (200 <= resp.status_code < 300):
            raise ExtractionError(
                f"Shopify API returned HTTP {resp.status_code}: {resp.text[:400]}",
                code="UPSTREAM_HTTP_ERROR",
            )

        try:
            payload = resp.json()
        except ValueError as e:
            raise ExtractionError(
                "Shopify API returned a non-JSON body", code="UPSTREAM_PROTOCOL_ERROR"
            ) from e

        if not isinstance(payload, Mapping):
            raise ExtractionError(
                "Shopify API returned an unexpected body", code="UPSTREAM_PROTOCOL_ERROR"
            )
        if payload.get("errors"):
            logger.error("Shopify GraphQL errors: %s", payload["errors"])
            raise ExtractionError("Shopify GraphQL Error", code="SHOPIFY_GRAPHQL_ERROR")

        data = payload.get("data")
        if not isinstance(data, Mapping):
            raise ExtractionError(
                "Shopify API response has no data", code="UPSTREAM_PROTOCOL_ERROR"
            )
        return dict(data)

    def fetch_page(
        self,
        cursor: Optional[str] = None,
        date_range: Optional[DateRange] = None,
    ) -> OrderPage:
        """Fetch a single page of orders starting after ``cursor``.

        Args:
            cursor: ``endCursor`` of the previous page, None for the first.
            date_range: Optional inclusive created_at filter applied server-side.

        Returns:
            OrderPage with the raw order nodes and pagination state.

        Raises:
            ExtractionError: If the request fails or the answer lacks the
                ``orders`` connection.
        """
        search = build_search_query(date_range)
        variables: dict[str, Any] = {"first": self.config.page_size, "after": cursor}
        if search:
            variables["query"] = search

        data = self.execute(build_orders_query(search), variables)

        orders = data.get("orders")
        if not isinstance(orders, Mapping):
            raise ExtractionError(
                "Shopify response is missing the orders connection",
                code="UPSTREAM_PROTOCOL_ERROR",
            )
        edges: Sequence[Any] = orders.get("edges") or []
        records = [
            edge["node"]
            for edge in edges
            if isinstance(edge, Mapping) and isinstance(edge.get("node"), Mapping)
        ]
        page_info = orders.get("pageInfo") or {}
        has_more = bool(page_info.get("hasNextPage"))
        next_cursor = page_info.get("endCursor")
        if has_more and not next_cursor:
            raise ExtractionError(
                "Shopify reported more pages but returned no cursor",
                code="UPSTREAM_PROTOCOL_ERROR",
            )
        return OrderPage(records=records, next_cursor=next_cursor, has_more=has_more)

    def iter_pages(self, date_range: Optional[DateRange] = None) -> Iterator[OrderPage]:
        """Yield pages sequentially until the stream is exhausted.

        Stops early once ``config.max_pages`` pages were yielded.
        """
        cursor: Optional[str] = None
        pages = 0
        fetched = 0
        while True:
            page = self.fetch_page(cursor, date_range)
            pages += 1
            fetched += len(page.records)
            logger.info("Fetched %d orders so far...", fetched)
            yield page

            if not page.has_more:
                break
            if self.config.max_pages is not None and pages >= self.config.max_pages:
                logger.warning(
                    "Stopping after %d pages (SHOPIFY_MAX_PAGES); more orders are available",
                    pages,
                )
                break
            cursor = page.next_cursor

    def iter_orders(self, date_range: Optional[DateRange] = None) -> Iterator[dict[str, Any]]:
        """Yield raw order records across all pages."""
        for page in self.iter_pages(date_range):
            yield from page.records
