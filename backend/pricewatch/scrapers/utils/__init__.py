"""Scraper utilities: resilient HTTP fetch, browser fetch, headers and price normalization."""

from .user_agents import (
    USER_AGENTS,
    BROWSER_USER_AGENT,
    get_random_user_agent,
    common_chrome_headers,
    document_navigation_headers,
)
from .normalizer import PriceNormalizer
from .retry import fetch_with_retry, compute_backoff_ms
from .page_classifier import classify_browser_error, detect_block_reason
from .browser_manager import (
    BrowserFetchResult,
    BrowserSession,
    fetch_with_browser,
    fetch_with_browser_detailed,
)


__all__ = [
    # User agents / headers
    "USER_AGENTS",
    "BROWSER_USER_AGENT",
    "get_random_user_agent",
    "common_chrome_headers",
    "document_navigation_headers",
    # Normalization
    "PriceNormalizer",
    # Plain HTTP
    "fetch_with_retry",
    "compute_backoff_ms",
    # Browser
    "classify_browser_error",
    "detect_block_reason",
    "BrowserFetchResult",
    "BrowserSession",
    "fetch_with_browser",
    "fetch_with_browser_detailed",
]
