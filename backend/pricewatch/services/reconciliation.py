"""Applies a scrape result to a stored price record.

The decision table, per record:

- failure (not found / error): hide the record when the result asks for
  it, otherwise leave it alone. Prices and history are never touched.
- success on a hidden record: show it again first.
- success with the same price: refresh the timestamp only.
- success with a new price: compare-and-swap the price, then append one
  history row and revalidate the product page.

Applying the same successful result twice writes a single history row:
the second guarded update matches no row and is reported as
``ALREADY_RECONCILED``.
"""

import enum
from typing import Optional

import structlog

from pricewatch.models.shop_price import ProductShopPrice
from pricewatch.scrapers.types import ScrapeOk, ScrapeResult
from pricewatch.scrapers.utils.normalizer import PriceNormalizer
from pricewatch.services.price_repository import ShopPriceRepository
from pricewatch.services.revalidation import RevalidationService

logger = structlog.get_logger(__name__)


class ReconcileEffect(str, enum.Enum):
    """What reconciliation did to the stored record."""

    NOOP = "noop"
    TOUCHED = "touched"
    PRICE_UPDATED = "price_updated"
    HIDDEN = "hidden"
    ALREADY_RECONCILED = "already_reconciled"


class ReconciliationService:
    """Merges fresh scrape results into ``products_shops_prices``."""

    def __init__(
        self,
        repository: ShopPriceRepository,
        revalidation: Optional[RevalidationService] = None,
    ):
        """Initialize reconciliation service.

        Args:
            repository: Storage collaborator for price records
            revalidation: Cache invalidation webhook (disabled if None)
        """
        self.repository = repository
        self.revalidation = revalidation or RevalidationService(base_url="")
        self.logger = logger.bind(service="reconciliation_service")

    async def apply(self, stored: ProductShopPrice, result: ScrapeResult) -> ReconcileEffect:
        """Apply one scrape result to its stored record.

        Args:
            stored: Record as read before the scrape
            result: Fresh result for the same (product, shop)

        Returns:
            ReconcileEffect describing the write that happened
        """
        log = self.logger.bind(
            shop=result.shop_name,
            url=stored.url,
            product_id=stored.product_id,
            shop_id=stored.shop_id,
        )

        if not isinstance(result, ScrapeOk):
            log.error("scrape_failed", status=result.status, reason=result.reason, hide=result.hide)
            if not result.hide:
                return ReconcileEffect.NOOP

            await self.repository.set_hidden(stored.product_id, stored.shop_id, hidden=True, touch=True)
            await self.revalidation.revalidate_product(stored.product_id)
            log.info("price_hidden", reason=result.reason)
            return ReconcileEffect.HIDDEN

        if stored.hidden:
            await self.repository.set_hidden(stored.product_id, stored.shop_id, hidden=False)
            await self.revalidation.revalidate_product(stored.product_id)
            log.info("price_unhidden")

        new_price = PriceNormalizer.to_decimal(result.current_price)
        regular_price = PriceNormalizer.to_decimal(result.regular_price)

        if stored.current_price is not None and PriceNormalizer.prices_equal(stored.current_price, new_price):
            await self.repository.touch_timestamp(stored.product_id, stored.shop_id)
            log.info("price_unchanged", current_price=result.current_price)
            return ReconcileEffect.TOUCHED

        updated = await self.repository.conditional_update_price(
            stored.product_id,
            stored.shop_id,
            current_price=new_price,
            regular_price=regular_price,
        )
        if not updated:
            log.info("price_already_reconciled", current_price=result.current_price)
            return ReconcileEffect.ALREADY_RECONCILED

        await self.repository.append_history(stored.product_id, stored.shop_id, new_price)
        await self.revalidation.revalidate_product(stored.product_id)

        log.info(
            "price_updated",
            previous_price=str(stored.current_price) if stored.current_price is not None else None,
            current_price=result.current_price,
        )
        return ReconcileEffect.PRICE_UPDATED
