"""Sirena storefront API adapter.

Each product row stores the storefront's JSON product endpoint in ``api``.
The endpoint answers either with the product or with a ``message`` when
the product no longer exists.
"""

from typing import Dict, Optional, Union

from pydantic import BaseModel, TypeAdapter, ValidationError

from pricewatch.scrapers import reasons
from pricewatch.scrapers.base import BaseHTTPAdapter
from pricewatch.scrapers.types import FetchConfig, ScrapeInput, ScrapeResult, ShopId
from pricewatch.scrapers.utils.user_agents import common_chrome_headers, get_random_user_agent


class SirenaProduct(BaseModel):
    thumbs: str
    category: str
    price: str
    regular_price: str


class SirenaProductPayload(BaseModel):
    product: SirenaProduct


class SirenaMessagePayload(BaseModel):
    message: str


_payload_adapter = TypeAdapter(Union[SirenaProductPayload, SirenaMessagePayload])


class SirenaAdapter(BaseHTTPAdapter):
    """Sirena product API (JSON over GET)."""

    shop_id = ShopId.SIRENA

    # Static storefront identifiers the API expects (base64 of public ids)
    CLIENT_HEADER = "MWZiZWNmNzM4YWU5ODkwMGI5MjQ4ZjI1ODNhZWZlNjYwNGE2MmEwZg=="
    SOURCE_HEADER = "c3RvcmVmcm9udA=="

    def build_headers(self) -> Dict[str, str]:
        return {
            **common_chrome_headers(get_random_user_agent()),
            "Accept": "application/json",
            "Origin": "https://sirena.do",
            "Referer": "https://sirena.do/",
            "client": self.CLIENT_HEADER,
            "source": self.SOURCE_HEADER,
            "sec-fetch-dest": "empty",
            "sec-fetch-mode": "cors",
            "sec-fetch-site": "same-site",
            "priority": "u=1, i",
        }

    async def scrape(self, input: ScrapeInput, config: Optional[FetchConfig] = None) -> ScrapeResult:
        if not input.api:
            return self.error(reasons.MISSING_API, retryable=False)

        response = await self._fetch(input.api, config)
        if response is None:
            return self.error(reasons.REQUEST_FAILED)

        body = self._read_json(response)
        if body is None:
            return self.error(reasons.INVALID_JSON)

        try:
            payload = _payload_adapter.validate_python(body)
        except ValidationError as e:
            self.logger.debug("payload_validation_failed", url=input.api, errors=e.error_count())
            return self.error(reasons.INVALID_PAYLOAD, retryable=False, hide=True)

        if isinstance(payload, SirenaMessagePayload):
            return self.not_found(payload.message)

        return self.ok(payload.product.price, payload.product.regular_price)
