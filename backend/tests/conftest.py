"""Pytest configuration and shared fixtures."""

from datetime import datetime, timezone
from decimal import Decimal
from types import SimpleNamespace
from typing import Optional
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from pricewatch.models import Base, Product, ProductShopPrice, TodaysDeal
from pricewatch.scrapers import round_robin
from pricewatch.scrapers.utils import retry
from pricewatch.services.price_repository import ShopPriceRepository
from pricewatch.services.revalidation import RevalidationService


@pytest.fixture
def anyio_backend():
    """Use asyncio as the async backend for tests."""
    return "asyncio"


@pytest.fixture(autouse=True)
def sleeps(monkeypatch):
    """Replace retry backoff and round pacing sleeps with recording mocks."""
    retry_sleep = AsyncMock()
    pacing_sleep = AsyncMock()
    monkeypatch.setattr(retry, "_sleep", retry_sleep)
    monkeypatch.setattr(round_robin, "_sleep", pacing_sleep)
    return SimpleNamespace(retry=retry_sleep, pacing=pacing_sleep)


# ============================================================================
# DATABASE FIXTURES
# ============================================================================

@pytest_asyncio.fixture
async def session_factory(tmp_path):
    """File-backed SQLite database so several sessions can run concurrently."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'pricewatch.db'}",
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
def repository(session_factory) -> ShopPriceRepository:
    return ShopPriceRepository(session_factory)


@pytest.fixture
def revalidation() -> AsyncMock:
    """Webhook double; ``revalidate_product`` calls are recorded."""
    return AsyncMock(spec=RevalidationService)


@pytest.fixture
def make_record(session_factory):
    """Insert a product and its price record at one shop."""

    async def _make(
        product_id: int = 1,
        shop_id: int = 2,
        current_price: Optional[str] = "100.00",
        regular_price: Optional[str] = None,
        hidden: Optional[bool] = False,
        updated_at: Optional[datetime] = None,
        deleted: Optional[bool] = False,
        url: Optional[str] = None,
        api: Optional[str] = None,
        todays_deal: bool = False,
    ) -> ProductShopPrice:
        async with session_factory() as db:
            if await db.get(Product, product_id) is None:
                db.add(Product(id=product_id, deleted=deleted))
            if todays_deal and await db.get(TodaysDeal, product_id) is None:
                db.add(TodaysDeal(product_id=product_id))

            record = ProductShopPrice(
                product_id=product_id,
                shop_id=shop_id,
                url=url if url is not None else f"https://shop-{shop_id}.example/products/{product_id}",
                api=api,
                current_price=Decimal(current_price) if current_price is not None else None,
                regular_price=Decimal(regular_price) if regular_price is not None else None,
                updated_at=updated_at,
                hidden=hidden,
            )
            db.add(record)
            await db.commit()
            return record

    return _make


@pytest.fixture
def utc():
    """Build timezone-aware UTC datetimes tersely."""

    def _utc(*args) -> datetime:
        return datetime(*args, tzinfo=timezone.utc)

    return _utc
