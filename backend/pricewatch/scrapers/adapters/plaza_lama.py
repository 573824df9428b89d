"""Plaza Lama GraphQL adapter.

Plaza Lama runs on a headless commerce platform; prices are queried by
SKU (stored in ``api``) through a batched GraphQL POST.
"""

from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from pricewatch.scrapers import reasons
from pricewatch.scrapers.base import BaseHTTPAdapter
from pricewatch.scrapers.types import FetchConfig, ScrapeInput, ScrapeResult, ShopId
from pricewatch.scrapers.utils.user_agents import common_chrome_headers, get_random_user_agent


GRAPHQL_ENDPOINT = "https://nextgentheadless.instaleap.io/api/v3"

PRODUCTS_BY_SKU_QUERY = """query GetProductsBySKU($getProductsBySKUInput: GetProductsBySKUInput!) {
  getProductsBySKU(getProductsBySKUInput: $getProductsBySKUInput) {
    price
    promotion {
      conditions {
        price
      }
    }
  }
}"""


class PromotionCondition(BaseModel):
    price: Decimal


class Promotion(BaseModel):
    conditions: List[PromotionCondition]


class SkuProduct(BaseModel):
    price: Decimal
    promotion: Optional[Promotion] = None


class ProductsBySkuData(BaseModel):
    products: List[SkuProduct] = Field(alias="getProductsBySKU")


class GraphQLResponse(BaseModel):
    data: ProductsBySkuData


_response_adapter = TypeAdapter(List[GraphQLResponse])


class PlazaLamaAdapter(BaseHTTPAdapter):
    """Plaza Lama prices by SKU (GraphQL over POST)."""

    shop_id = ShopId.PLAZA_LAMA

    CLIENT_ID = "PLAZA_LAMA"
    STORE_REFERENCE = "PL08-D"

    def build_headers(self) -> Dict[str, str]:
        return {
            **common_chrome_headers(get_random_user_agent()),
            "Accept": "*/*",
            "Content-Type": "application/json",
            "Origin": "https://plazalama.com.do",
            "Referer": "https://plazalama.com.do/",
            "apollographql-client-name": "Ecommerce Moira client",
            "apollographql-client-version": "0.18.386",
            "sec-fetch-dest": "empty",
            "sec-fetch-mode": "cors",
            "sec-fetch-site": "cross-site",
            "priority": "u=1, i",
        }

    def build_payload(self, sku: str) -> list:
        return [
            {
                "operationName": "GetProductsBySKU",
                "variables": {
                    "getProductsBySKUInput": {
                        "clientId": self.CLIENT_ID,
                        "skus": [sku],
                        "storeReference": self.STORE_REFERENCE,
                    },
                },
                "query": PRODUCTS_BY_SKU_QUERY,
            }
        ]

    async def scrape(self, input: ScrapeInput, config: Optional[FetchConfig] = None) -> ScrapeResult:
        if not input.api:
            return self.error(reasons.MISSING_API, retryable=False)

        response = await self._fetch(
            GRAPHQL_ENDPOINT,
            config,
            method="POST",
            json=self.build_payload(input.api),
        )
        if response is None:
            return self.error(reasons.REQUEST_FAILED)

        body = self._read_json(response)
        if body is None:
            return self.error(reasons.INVALID_JSON)

        try:
            batches = _response_adapter.validate_python(body)
        except ValidationError as e:
            self.logger.debug("payload_validation_failed", sku=input.api, errors=e.error_count())
            return self.error(reasons.INVALID_PAYLOAD, retryable=False)

        products = batches[0].data.products if batches else []
        if not products:
            return self.not_found(reasons.PRODUCT_NOT_FOUND)

        first = products[0]
        promo_price = first.price
        if first.promotion is not None and first.promotion.conditions:
            promo_price = first.promotion.conditions[0].price

        return self.ok(promo_price, first.price)
