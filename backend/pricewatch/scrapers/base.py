"""Base shop adapter interface.

All shop-specific adapters inherit from BaseHTTPAdapter or
BaseBrowserAdapter and implement ``scrape()``. Adapters are total: they
never raise, every failure becomes a ScrapeNotFound or ScrapeError with a
reason from ``pricewatch.scrapers.reasons``.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import httpx
import structlog

from pricewatch.scrapers import reasons
from pricewatch.scrapers.types import (
    SHOP_NAMES,
    FetchConfig,
    ScrapeError,
    ScrapeInput,
    ScrapeNotFound,
    ScrapeOk,
    ScrapeResult,
    ShopId,
)
from pricewatch.scrapers.utils.browser_manager import BrowserFetchResult, fetch_with_browser_detailed
from pricewatch.scrapers.utils.normalizer import PriceNormalizer
from pricewatch.scrapers.utils.retry import fetch_with_retry
from pricewatch.scrapers.utils.user_agents import common_chrome_headers, get_random_user_agent


class BaseAdapter(ABC):
    """Abstract base class for all shop adapters.

    Capability set: ``scrape()`` produces a result for one input and
    ``build_headers()`` returns the request headers the shop expects.
    """

    shop_id: ShopId  # Must be overridden in subclass
    adapter_type: str = ""  # 'http' or 'browser'

    def __init__(self):
        """Initialize the adapter with dependency injection points."""
        self.logger = structlog.get_logger(__name__).bind(adapter=self.shop_name)

    @property
    def shop_name(self) -> str:
        return SHOP_NAMES[self.shop_id]

    @abstractmethod
    async def scrape(self, input: ScrapeInput, config: Optional[FetchConfig] = None) -> ScrapeResult:
        """Fetch and parse the current price for one product.

        Args:
            input: Shop, URL and optional vendor API locator
            config: Retry count and per-attempt timeout

        Returns:
            ScrapeOk, ScrapeNotFound or ScrapeError. Never raises.
        """
        pass

    def build_headers(self) -> Dict[str, str]:
        """Request headers for this shop (rotated Chrome UA by default)."""
        return common_chrome_headers(get_random_user_agent())

    def ok(self, current_price: Any, regular_price: Any = None) -> ScrapeResult:
        """Successful result; prices are normalized to decimal strings."""
        current = PriceNormalizer.to_price_string(current_price)
        if current is None:
            return self.error(reasons.PRICE_NOT_FOUND, retryable=False)
        return ScrapeOk(
            shop_id=self.shop_id,
            current_price=current,
            regular_price=PriceNormalizer.to_price_string(regular_price),
        )

    def not_found(self, reason: str, hide: bool = True) -> ScrapeNotFound:
        return ScrapeNotFound(shop_id=self.shop_id, reason=reason, hide=hide)

    def error(self, reason: str, retryable: bool = True, hide: bool = False) -> ScrapeError:
        return ScrapeError(shop_id=self.shop_id, reason=reason, retryable=retryable, hide=hide)


class BaseHTTPAdapter(BaseAdapter):
    """Base class for adapters that talk plain HTTP (HTML pages or JSON APIs).

    Provides retrying fetch and JSON decoding helpers.
    """

    adapter_type = "http"

    def __init__(self, http_client: Optional[httpx.AsyncClient] = None):
        """Initialize HTTP adapter.

        Args:
            http_client: Shared httpx client (injected by the factory)
        """
        super().__init__()
        self.http_client = http_client

    async def _fetch(
        self,
        url: str,
        config: Optional[FetchConfig],
        *,
        method: str = "GET",
        json: Any = None,
    ) -> Optional[httpx.Response]:
        """Fetch with retry/backoff using this shop's headers."""
        return await fetch_with_retry(
            url,
            method=method,
            headers=self.build_headers(),
            json=json,
            config=config,
            client=self.http_client,
        )

    def _read_json(self, response: httpx.Response) -> Any:
        """Decode a JSON body, returning None when it is empty or malformed."""
        try:
            return response.json()
        except ValueError:
            self.logger.debug("json_decode_failed", url=str(response.url), status=response.status_code)
            return None

    def _read_text(self, response: httpx.Response) -> str:
        try:
            return response.text
        except (UnicodeDecodeError, httpx.HTTPError):
            return ""


class BaseBrowserAdapter(BaseAdapter):
    """Base class for adapters that need a real browser (script-guarded pages)."""

    adapter_type = "browser"

    def __init__(self, browser_timeout_ms: Optional[int] = None):
        super().__init__()
        self.browser_timeout_ms = browser_timeout_ms

    async def _render(self, url: str) -> BrowserFetchResult:
        """Render a page in an isolated stealth browser."""
        return await fetch_with_browser_detailed(url, self.browser_timeout_ms)
