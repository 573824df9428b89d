"""PriceSmart product API adapter.

PriceSmart prices are per country and live inside product variant
attributes as JSON-encoded ``[{"country": ..., "value": ...}]`` lists.
Only the Dominican Republic ("DO") price is tracked.
"""

import json
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from pricewatch.scrapers import reasons
from pricewatch.scrapers.base import BaseHTTPAdapter
from pricewatch.scrapers.types import FetchConfig, ScrapeInput, ScrapeResult, ShopId
from pricewatch.scrapers.utils.user_agents import common_chrome_headers, get_random_user_agent


PRODUCT_ENDPOINT = "https://www.pricesmart.com/api/ct/getProduct"
COUNTRY_CODE = "DO"


class RawAttribute(BaseModel):
    name: str
    value: Any = None


class Variant(BaseModel):
    attributes_raw: List[RawAttribute] = Field(alias="attributesRaw")


class CurrentMasterData(BaseModel):
    all_variants: List[Variant] = Field(alias="allVariants")


class MasterData(BaseModel):
    current: CurrentMasterData


class ProductResult(BaseModel):
    master_data: MasterData = Field(alias="masterData")


class ProductResults(BaseModel):
    results: List[ProductResult]


class ProductData(BaseModel):
    products: ProductResults


class ProductResponse(BaseModel):
    data: ProductData


class CountryPrice(BaseModel):
    country: str
    value: str


_country_prices_adapter = TypeAdapter(List[CountryPrice])


def parse_country_price(raw: Any, country: str = COUNTRY_CODE) -> Optional[CountryPrice]:
    """Pick one country's price out of a raw attribute value.

    Args:
        raw: JSON string (or already-decoded list) of country prices
        country: ISO country code to select

    Returns:
        CountryPrice or None when missing or malformed
    """
    if not raw:
        return None

    try:
        decoded = json.loads(raw) if isinstance(raw, str) else raw
        prices = _country_prices_adapter.validate_python(decoded)
    except (ValueError, ValidationError):
        return None

    return next((price for price in prices if price.country == country), None)


class PricesmartAdapter(BaseHTTPAdapter):
    """PriceSmart product lookup by SKU (JSON over POST)."""

    shop_id = ShopId.PRICESMART

    def build_headers(self) -> Dict[str, str]:
        return {
            **common_chrome_headers(get_random_user_agent()),
            "Accept": "application/json, text/plain, */*",
            "Content-Type": "application/json",
            "Origin": "https://www.pricesmart.com",
            "Referer": "https://www.pricesmart.com/es-do/",
            "sec-fetch-dest": "empty",
            "sec-fetch-mode": "cors",
            "sec-fetch-site": "same-origin",
            "priority": "u=1, i",
        }

    async def scrape(self, input: ScrapeInput, config: Optional[FetchConfig] = None) -> ScrapeResult:
        if not input.api:
            return self.error(reasons.MISSING_API, retryable=False, hide=True)

        response = await self._fetch(
            PRODUCT_ENDPOINT,
            config,
            method="POST",
            json=[{"skus": [input.api]}, {"products": "getProductBySKU"}],
        )
        if response is None:
            return self.error(reasons.REQUEST_FAILED, hide=True)

        body = self._read_json(response)
        if body is None:
            return self.error(reasons.INVALID_JSON, hide=True)

        try:
            payload = ProductResponse.model_validate(body)
        except ValidationError as e:
            self.logger.debug("payload_validation_failed", sku=input.api, errors=e.error_count())
            return self.error(reasons.INVALID_PAYLOAD, retryable=False, hide=True)

        results = payload.data.products.results
        if not results:
            return self.not_found(reasons.PRODUCT_NOT_FOUND)

        variants = results[0].master_data.current.all_variants
        attributes = {attr.name: attr.value for attr in (variants[0].attributes_raw if variants else [])}

        if "unit_price" not in attributes:
            return self.error(reasons.UNIT_PRICE_NOT_FOUND, retryable=False, hide=True)

        current = parse_country_price(attributes["unit_price"])
        if current is None:
            return self.error(reasons.DO_PRICE_NOT_FOUND, retryable=False, hide=True)

        original = parse_country_price(attributes.get("original_price_without_saving"))

        return self.ok(current.value, original.value if original else None)
