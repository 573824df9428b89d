"""Persistence for per-shop price records and their history.

Every method opens its own session and commits before returning, so
reconciliation effects are applied record by record with no batch
transaction spanning several items.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import List, Optional

import structlog
from sqlalchemy import and_, or_, select, text, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pricewatch.config import settings
from pricewatch.models.price_history import ProductPriceHistory
from pricewatch.models.product import Product
from pricewatch.models.shop_price import ProductShopPrice
from pricewatch.models.todays_deal import TodaysDeal

logger = structlog.get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ShopPriceRepository:
    """Reads and conditionally writes ``products_shops_prices`` rows."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        """Initialize repository.

        Args:
            session_factory: Async session factory for database access
        """
        self.session_factory = session_factory
        self.logger = logger.bind(service="shop_price_repository")

    @staticmethod
    def _key(product_id: int, shop_id: int):
        return and_(
            ProductShopPrice.product_id == product_id,
            ProductShopPrice.shop_id == shop_id,
        )

    async def get_stored_record(self, product_id: int, shop_id: int) -> Optional[ProductShopPrice]:
        async with self.session_factory() as db:
            result = await db.execute(
                select(ProductShopPrice).where(self._key(product_id, shop_id))
            )
            return result.scalar_one_or_none()

    async def conditional_update_price(
        self,
        product_id: int,
        shop_id: int,
        current_price: Decimal,
        regular_price: Optional[Decimal],
        now: Optional[datetime] = None,
    ) -> bool:
        """Compare-and-swap the current price.

        The row is only written while its stored price is NULL or differs
        from ``current_price``; a concurrent writer that already stored the
        same price makes this a no-op.

        Returns:
            True if a row was updated
        """
        async with self.session_factory() as db:
            result = await db.execute(
                update(ProductShopPrice)
                .where(
                    self._key(product_id, shop_id),
                    or_(
                        ProductShopPrice.current_price.is_(None),
                        ProductShopPrice.current_price != current_price,
                    ),
                )
                .values(
                    current_price=current_price,
                    regular_price=regular_price,
                    updated_at=now or _utcnow(),
                )
                .execution_options(synchronize_session=False)
            )
            await db.commit()
            return result.rowcount > 0

    async def set_hidden(
        self,
        product_id: int,
        shop_id: int,
        hidden: bool,
        touch: bool = False,
        now: Optional[datetime] = None,
    ) -> None:
        values = {"hidden": hidden}
        if touch:
            values["updated_at"] = now or _utcnow()

        async with self.session_factory() as db:
            await db.execute(
                update(ProductShopPrice)
                .where(self._key(product_id, shop_id))
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            await db.commit()

    async def touch_timestamp(self, product_id: int, shop_id: int, now: Optional[datetime] = None) -> None:
        async with self.session_factory() as db:
            await db.execute(
                update(ProductShopPrice)
                .where(self._key(product_id, shop_id))
                .values(updated_at=now or _utcnow())
                .execution_options(synchronize_session=False)
            )
            await db.commit()

    async def append_history(
        self,
        product_id: int,
        shop_id: int,
        price: Decimal,
        now: Optional[datetime] = None,
    ) -> ProductPriceHistory:
        async with self.session_factory() as db:
            entry = ProductPriceHistory(
                product_id=product_id,
                shop_id=shop_id,
                price=price,
                created_at=now or _utcnow(),
            )
            db.add(entry)
            await db.commit()
            return entry

    async def select_stale_records(
        self,
        shop_id: int,
        limit: int,
        now: Optional[datetime] = None,
    ) -> List[ProductShopPrice]:
        """Oldest records of one shop that are due for a re-check.

        A record is due when its product is not deleted and it is either
        visible and not refreshed for ``STALE_AFTER_HOURS``, or hidden and
        not re-checked for ``HIDDEN_RECHECK_DAYS``.
        """
        now = now or _utcnow()
        stale_cutoff = now - timedelta(hours=settings.STALE_AFTER_HOURS)
        hidden_cutoff = now - timedelta(days=settings.HIDDEN_RECHECK_DAYS)

        visible_and_stale = and_(
            or_(
                ProductShopPrice.updated_at.is_(None),
                ProductShopPrice.updated_at < stale_cutoff,
            ),
            or_(
                ProductShopPrice.hidden.is_(None),
                ProductShopPrice.hidden == False,
            ),
        )
        hidden_and_due = and_(
            ProductShopPrice.hidden == True,
            ProductShopPrice.updated_at < hidden_cutoff,
        )

        query = (
            select(ProductShopPrice)
            .join(Product, Product.id == ProductShopPrice.product_id)
            .where(
                ProductShopPrice.shop_id == shop_id,
                or_(Product.deleted.is_(None), Product.deleted == False),
                or_(visible_and_stale, hidden_and_due),
            )
            # NULL timestamps (never scraped) first
            .order_by(ProductShopPrice.updated_at.asc().nulls_first())
            .limit(limit)
        )

        async with self.session_factory() as db:
            result = await db.execute(query)
            return list(result.scalars().all())

    async def select_todays_deal_records(self) -> List[ProductShopPrice]:
        """All shop price records of products currently in today's deals."""
        query = (
            select(ProductShopPrice)
            .join(TodaysDeal, TodaysDeal.product_id == ProductShopPrice.product_id)
            .order_by(ProductShopPrice.product_id, ProductShopPrice.shop_id)
        )
        async with self.session_factory() as db:
            result = await db.execute(query)
            return list(result.scalars().all())

    async def refresh_todays_deals(self) -> None:
        """Rebuild the today's-deals set with the database-side function."""
        async with self.session_factory() as db:
            await db.execute(text("SELECT public.refresh_todays_deals()"))
            await db.commit()
        self.logger.info("todays_deals_refreshed")
