"""Unified configuration for Studio Sales.

This module provides the single configuration class used by the order
source, the CLI and the web app.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Optional

from studio_sales.exceptions import ConfigError

DEFAULT_API_VERSION = "2024-01"
DEFAULT_TIMEOUT = 60.0
DEFAULT_RETRIES = 3
DEFAULT_PAGE_SIZE = 50


@dataclass
class ShopifyConfig:
    """Connection settings for the Shopify Admin GraphQL API.

    Attributes:
        store_domain: Store host, e.g. ``"my-shop.myshopify.com"``.
        access_token: Admin API access token.
        api_version: Admin API version segment of the URL.
        timeout: Default timeout in seconds for every request.
        retries: Transport-level retry attempts for 429/5xx answers.
        page_size: Orders requested per page.
        max_pages: Upper bound on pages fetched per run; None is unbounded.

    Environment:
        SHOPIFY_STORE_DOMAIN            (required)
        SHOPIFY_ADMIN_API_ACCESS_TOKEN  (required)
        SHOPIFY_API_VERSION=2024-01
        SHOPIFY_TIMEOUT=60
        SHOPIFY_RETRIES=3
        SHOPIFY_PAGE_SIZE=50
        SHOPIFY_MAX_PAGES=              (empty means unbounded)
    """

    store_domain: str
    access_token: str
    api_version: str = DEFAULT_API_VERSION
    timeout: float = DEFAULT_TIMEOUT
    retries: int = DEFAULT_RETRIES
    page_size: int = DEFAULT_PAGE_SIZE
    max_pages: Optional[int] = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> ShopifyConfig:
        """Build the configuration from environment variables.

        Args:
            environ: Mapping to read from. Defaults to ``os.environ``.

        Returns:
            ShopifyConfig instance.

        Raises:
            ConfigError: If the store domain or access token is missing, or a
                numeric setting cannot be parsed.

        Examples:
            >>> cfg = ShopifyConfig.from_env({
            ...     "SHOPIFY_STORE_DOMAIN": "demo.myshopify.com",
            ...     "SHOPIFY_ADMIN_API_ACCESS_TOKEN": "shpat_x",
            ... })
            >>> cfg.graphql_url
            'https://demo.myshopify.com/admin/api/2024-01/graphql.json'
        """
        env = os.environ if environ is None else environ

        # Strip quotes copied over from .env files
        domain = env.get("SHOPIFY_STORE_DOMAIN", "").strip().strip('"').strip("'")
        token = env.get("SHOPIFY_ADMIN_API_ACCESS_TOKEN", "").strip().strip('"').strip("'")
        if not domain:
            raise ConfigError("SHOPIFY_STORE_DOMAIN environment variable must be set.")
        if not token:
            raise ConfigError("SHOPIFY_ADMIN_API_ACCESS_TOKEN environment variable must be set.")

        max_pages_raw = env.get("SHOPIFY_MAX_PAGES", "").strip()
        try:
            return cls(
                store_domain=domain,
                access_token=token,
                api_version=env.get("SHOPIFY_API_VERSION", DEFAULT_API_VERSION).strip()
                or DEFAULT_API_VERSION,
                timeout=float(env.get("SHOPIFY_TIMEOUT", DEFAULT_TIMEOUT)),
                retries=int(env.get("SHOPIFY_RETRIES", DEFAULT_RETRIES)),
                page_size=int(env.get("SHOPIFY_PAGE_SIZE", DEFAULT_PAGE_SIZE)),
                max_pages=int(max_pages_raw) if max_pages_raw else None,
            )
        except ValueError as e:
            raise ConfigError(f"Invalid Shopify configuration value: {e}") from e

    @property
    def graphql_url(self) -> str:
        """Admin GraphQL endpoint for the configured store and version."""
        domain = self.store_domain.removeprefix("https://").removeprefix("http://").rstrip("/")
        return f"https://{domain}/admin/api/{self.api_version}/graphql.json"
