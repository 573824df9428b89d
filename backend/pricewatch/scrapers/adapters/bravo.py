"""Supermercados Bravo mobile API adapter.

Bravo has no public web storefront API; prices come from the endpoint the
mobile app uses. A product is listed per store, store 1000 is the
reference store.
"""

from decimal import Decimal
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from pricewatch.config import settings
from pricewatch.scrapers import reasons
from pricewatch.scrapers.base import BaseHTTPAdapter
from pricewatch.scrapers.types import FetchConfig, ScrapeInput, ScrapeResult, ShopId


APP_USER_AGENT = "Domicilio/122130 CFNetwork/3826.500.131 Darwin/24.5.0"
REFERENCE_STORE_ID = 1000


class StoreOffer(BaseModel):
    reference_price: Decimal = Field(alias="precioReferenciaArticuloTiendaOferta")


class StoreListing(BaseModel):
    store_id: int = Field(alias="idTiendaArticuloTienda")
    pvp: Decimal = Field(alias="pvpArticuloTienda")
    offers: List[StoreOffer] = Field(alias="associatedOferta")


class ArticleData(BaseModel):
    stores: List[StoreListing] = Field(alias="associatedTienda")


class ArticlePayload(BaseModel):
    data: ArticleData


class ApiErrorCode(BaseModel):
    code: str


class ApiErrorPayload(BaseModel):
    errors: List[ApiErrorCode]


_payload_adapter = TypeAdapter(Union[ArticlePayload, ApiErrorPayload])


class BravoAdapter(BaseHTTPAdapter):
    """Bravo article lookup (JSON over GET, app headers)."""

    shop_id = ShopId.BRAVO

    def build_headers(self) -> Dict[str, str]:
        headers = {
            "Host": "bravova-api.superbravo.com.do",
            "Accept": "*/*",
            "User-Agent": APP_USER_AGENT,
            "Accept-Language": "en-GB,en-US;q=0.9,en;q=0.8",
            "Accept-Encoding": "gzip, deflate, br",
            "Connection": "keep-alive",
        }
        if settings.BRAVO_API_TOKEN:
            headers["X-Auth-Token"] = settings.BRAVO_API_TOKEN
        return headers

    @staticmethod
    def select_store(stores: List[StoreListing]) -> Optional[StoreListing]:
        """Reference store when listed, otherwise the first store."""
        for store in stores:
            if store.store_id == REFERENCE_STORE_ID:
                return store
        return stores[0] if stores else None

    async def scrape(self, input: ScrapeInput, config: Optional[FetchConfig] = None) -> ScrapeResult:
        if not input.api:
            return self.error(reasons.MISSING_API, retryable=False, hide=True)

        response = await self._fetch(input.api, config)
        if response is None:
            return self.error(reasons.REQUEST_FAILED, hide=True)

        body = self._read_json(response)
        if body is None:
            return self.error(reasons.INVALID_JSON, hide=True)

        try:
            payload = _payload_adapter.validate_python(body)
        except ValidationError as e:
            self.logger.debug("payload_validation_failed", url=input.api, errors=e.error_count())
            return self.error(reasons.INVALID_PAYLOAD, retryable=False, hide=True)

        if isinstance(payload, ApiErrorPayload):
            return self.not_found(reasons.PRODUCT_NOT_FOUND)

        store = self.select_store(payload.data.stores)
        if store is None:
            return self.not_found(reasons.PRODUCT_NOT_FOUND)

        reference = store.offers[0].reference_price if store.offers else None
        return self.ok(store.pvp, reference)
