"""Live smoke test against a real Shopify store.

Skipped unless the Shopify credentials are present in the environment.
Run with ``pytest -m live``.
"""

import os

import pytest

from studio_sales.analytics import derive_read_model
from studio_sales.config import ShopifyConfig
from studio_sales.orders import orders_response
from studio_sales.orders.extract import ShopifyOrderSource


@pytest.mark.live
def test_last_30_days_live() -> None:
    """Live test: fetch the last 30 days and build the read model.

    Prerequisites:
        - SHOPIFY_STORE_DOMAIN: store host (required)
        - SHOPIFY_ADMIN_API_ACCESS_TOKEN: Admin API token (required)

    The test will be skipped if credentials are not available.
    """
    if not all(
        [
            os.environ.get("SHOPIFY_STORE_DOMAIN"),
            os.environ.get("SHOPIFY_ADMIN_API_ACCESS_TOKEN"),
        ]
    ):
        pytest.skip("SHOPIFY_STORE_DOMAIN/SHOPIFY_ADMIN_API_ACCESS_TOKEN not set")

    config = ShopifyConfig.from_env()
    config.max_pages = 2
    body, status = orders_response(ShopifyOrderSource(config), "30d")

    assert status == 200, body
    assert body["success"] is True
    model = derive_read_model(body["data"])
    assert len(model.waterfall_data) == 5
    assert all(s.net_sales > 0 for s in model.valid_studios)
