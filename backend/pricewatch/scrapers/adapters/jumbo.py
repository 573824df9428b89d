"""Jumbo browser adapter.

Jumbo product pages sit behind a JavaScript challenge, so they are
rendered in a headless browser. The markup is Magento, like Nacional.
"""

from typing import Dict, Optional

from bs4 import BeautifulSoup

from pricewatch.scrapers import reasons
from pricewatch.scrapers.adapters.nacional import extract_magento_prices
from pricewatch.scrapers.base import BaseBrowserAdapter
from pricewatch.scrapers.types import FetchConfig, ScrapeInput, ScrapeResult, ShopId
from pricewatch.scrapers.utils.user_agents import document_navigation_headers


class JumboAdapter(BaseBrowserAdapter):
    """Jumbo product pages rendered with Playwright."""

    shop_id = ShopId.JUMBO

    def build_headers(self) -> Dict[str, str]:
        return {
            **document_navigation_headers("https://jumbo.com.do/"),
            "Cache-Control": "max-age=0",
        }

    async def scrape(self, input: ScrapeInput, config: Optional[FetchConfig] = None) -> ScrapeResult:
        page = await self._render(input.url)
        if not page.ok:
            self.logger.warning("browser_fetch_failed", url=input.url, reason=page.reason)
            return self.error(page.reason or reasons.REQUEST_FAILED)

        soup = BeautifulSoup(page.html, "html.parser")
        final_price, old_price = extract_magento_prices(soup)

        if not final_price:
            return self.not_found(reasons.PRICE_NOT_FOUND)

        return self.ok(final_price, old_price)
