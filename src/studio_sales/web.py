"""HTTP boundary: the orders endpoint consumed by the dashboard.

Run with ``studio-sales serve`` or ``uvicorn studio_sales.web:app``.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from fastapi import FastAPI, Query
from fastapi.responses import JSONResponse

from studio_sales.orders.api import default_source, error_envelope, orders_response
from studio_sales.orders.extract import OrderSource

logger = logging.getLogger(__name__)

ORDERS_ENDPOINT = "/api/shopify/orders"


def create_app(source_factory: Callable[[], OrderSource] = default_source) -> FastAPI:
    """Build the FastAPI app.

    Args:
        source_factory: Called once per request to obtain the order source.
            Configuration errors it raises are returned as failure envelopes.
    """
    app = FastAPI(title="Studio Sales Analytics")

    @app.get("/healthz")
    def healthz() -> dict:
        return {"status": "ok"}

    @app.get(ORDERS_ENDPOINT)
    def get_orders(
        range_: Optional[str] = Query(None, alias="range", description="all | 30d | 90d | ytd"),
        start_date: Optional[str] = Query(None, alias="startDate", description="YYYY-MM-DD"),
        end_date: Optional[str] = Query(None, alias="endDate", description="YYYY-MM-DD"),
    ) -> JSONResponse:
        try:
            source = source_factory()
        except Exception as e:
            logger.error("Could not create order source: %s", e)
            body, status = error_envelope(e)
            return JSONResponse(status_code=status, content=body)

        body, status = orders_response(source, range_, start_date, end_date)
        return JSONResponse(status_code=status, content=body)

    return app


app = create_app()
