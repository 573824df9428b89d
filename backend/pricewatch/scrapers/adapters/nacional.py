"""Supermercados Nacional HTML adapter.

Product pages are server-rendered Magento pages; the price sits in the
``data-price-amount`` attribute of the final/old price spans. Under load the
site serves a "503 backend read error" page, which is escalated to a
run-level failure by the batch jobs.
"""

from typing import Dict, Optional, Tuple

from bs4 import BeautifulSoup

from pricewatch.scrapers import reasons
from pricewatch.scrapers.base import BaseHTTPAdapter
from pricewatch.scrapers.types import FetchConfig, ScrapeInput, ScrapeResult, ShopId
from pricewatch.scrapers.utils.user_agents import document_navigation_headers


NOT_FOUND_TITLE = "404 Página no encontrada"
BACKEND_ERROR_TITLE = "503 backend read error"


def extract_magento_prices(soup: BeautifulSoup) -> Tuple[Optional[str], Optional[str]]:
    """Read (final, old) prices from Magento price spans."""
    final_span = soup.select_one('span[data-price-type="finalPrice"]')
    old_span = soup.select_one('span[data-price-type="oldPrice"]')
    final_price = final_span.get("data-price-amount") if final_span else None
    old_price = old_span.get("data-price-amount") if old_span else None
    return final_price or None, old_price or None


def extract_page_title(soup: BeautifulSoup) -> str:
    """og:title when present, otherwise the <title> text."""
    og_title = soup.select_one('meta[property="og:title"]')
    if og_title is not None and og_title.get("content") is not None:
        return og_title["content"].strip()
    if soup.title is not None:
        return soup.title.get_text().strip()
    return ""


class NacionalAdapter(BaseHTTPAdapter):
    """Nacional product pages (HTML over GET)."""

    shop_id = ShopId.NACIONAL

    def build_headers(self) -> Dict[str, str]:
        return document_navigation_headers("https://supermercadosnacional.com/")

    async def scrape(self, input: ScrapeInput, config: Optional[FetchConfig] = None) -> ScrapeResult:
        response = await self._fetch(input.url, config)
        if response is None:
            return self.error(reasons.REQUEST_FAILED)

        html = self._read_text(response)
        if not html:
            return self.error(reasons.EMPTY_HTML)

        soup = BeautifulSoup(html, "html.parser")
        title = extract_page_title(soup)

        if NOT_FOUND_TITLE in title:
            return self.not_found(reasons.PRODUCT_NOT_FOUND)

        final_price, old_price = extract_magento_prices(soup)

        if not final_price:
            if BACKEND_ERROR_TITLE in title:
                return self.error(reasons.BACKEND_503)
            return self.error(reasons.PRICE_NOT_FOUND, retryable=False)

        return self.ok(final_price, old_price)
