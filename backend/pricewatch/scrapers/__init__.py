"""Scraper system for fetching shop prices.

This package provides:
- Base adapter classes and one adapter per shop
- A resilient fetch layer (HTTP retry/backoff, headless browser)
- Factory for creating and dispatching to adapter instances
- Round-robin batch scraping and the periodic batch jobs
"""

from .types import (
    FetchConfig,
    ScrapeError,
    ScrapeInput,
    ScrapeNotFound,
    ScrapeOk,
    ScrapeResult,
    ShopId,
)
from .factory import AdapterFactory, adapter_factory, get_adapter_factory, scrape_price

__all__ = [
    # Data structures
    "FetchConfig",
    "ScrapeError",
    "ScrapeInput",
    "ScrapeNotFound",
    "ScrapeOk",
    "ScrapeResult",
    "ShopId",
    # Factory
    "AdapterFactory",
    "adapter_factory",
    "get_adapter_factory",
    "scrape_price",
]
