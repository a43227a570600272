"""Domain-specific exceptions for Studio Sales analytics.

This module defines custom exceptions that are part of the public API.
All exceptions inherit from SalesAPIError for easy catching, and every
exception carries a machine-readable ``code`` that the HTTP boundary copies
into its failure envelope.
"""

from __future__ import annotations

from typing import Optional


class SalesAPIError(Exception):
    """Base exception for all Studio Sales errors.

    Users can catch this exception to handle any error raised by the
    package. ``code`` is a stable identifier and ``status`` the HTTP status
    the web layer answers with.
    """

    code = "INTERNAL_ERROR"
    status = 500

    def __init__(self, message: str, *, code: Optional[str] = None) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code


class ConfigError(SalesAPIError):
    """Raised when there is a configuration error.

    This exception is raised when:
    - Required environment variables are missing
    - Configuration values cannot be parsed
    """

    code = "CONFIG_ERROR"


class AggregationError(SalesAPIError):
    """Raised when an aggregator is used outside its lifecycle.

    This exception is raised when:
    - Orders are added to an aggregator that was already finalized
    - A finalized aggregator is merged into another one
    """

    code = "AGGREGATION_ERROR"


class ETLError(SalesAPIError):
    """Raised when a pipeline stage fails."""

    code = "ETL_ERROR"


class ExtractionError(ETLError):
    """Raised when fetching orders from the store fails.

    This exception is raised when:
    - Network connection to the Shopify Admin API fails
    - The API answers with a non-2xx status
    - The GraphQL response carries ``errors`` or an unexpected shape
    """

    code = "UPSTREAM_HTTP_ERROR"
    status = 502
