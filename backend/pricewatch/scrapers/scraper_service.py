"""Scraper orchestration service.

This service connects the scraper adapter layer with the database services.
It handles the end-to-end flow of the batch jobs: select stored price
records, scrape them in per-shop rounds, and reconcile every result.
"""

import asyncio
import time
from collections import Counter
from typing import Dict, List, Optional, Sequence, Set

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pricewatch.config import settings
from pricewatch.core.exceptions import FatalScrapeError
from pricewatch.models.shop_price import ProductShopPrice
from pricewatch.scrapers import reasons
from pricewatch.scrapers.factory import scrape_price
from pricewatch.scrapers.round_robin import ScrapeFn, build_rounds, random_pause
from pricewatch.scrapers.types import (
    FetchConfig,
    ScrapeError,
    ScrapeInput,
    ScrapeResult,
    ShopId,
    is_shop_id,
)
from pricewatch.services.price_repository import ShopPriceRepository
from pricewatch.services.reconciliation import ReconcileEffect, ReconciliationService
from pricewatch.services.revalidation import RevalidationService

logger = structlog.get_logger(__name__)


# Failure reasons that mean a whole shop is down rather than one listing
FATAL_REASONS: Dict[ShopId, Set[str]] = {
    ShopId.NACIONAL: {reasons.BACKEND_503},
}


def is_fatal_result(result: ScrapeResult) -> bool:
    """Whether a result should abort the whole run instead of being reconciled."""
    return isinstance(result, ScrapeError) and result.reason in FATAL_REASONS.get(result.shop_id, set())


class ScraperService:
    """Service for orchestrating the price batch jobs.

    This service acts as the bridge between the adapters and the
    reconciliation engine. It handles the complete flow:
    select records → scrape in rounds → reconcile → log results.
    """

    def __init__(
        self,
        db_session_factory: async_sessionmaker[AsyncSession],
        repository: Optional[ShopPriceRepository] = None,
        reconciliation: Optional[ReconciliationService] = None,
        scrape: Optional[ScrapeFn] = None,
    ):
        """Initialize scraper service.

        Args:
            db_session_factory: Async session factory for database access
            repository: Price record storage (built from the factory if None)
            reconciliation: Result applier (built from the repository if None)
            scrape: Per-input dispatcher (defaults to registry dispatch)
        """
        self.repository = repository or ShopPriceRepository(db_session_factory)
        self.reconciliation = reconciliation or ReconciliationService(
            self.repository,
            RevalidationService(),
        )
        self.scrape = scrape or scrape_price
        self.logger = logger.bind(service="scraper_service")

    async def process_shop_price(
        self,
        record: ProductShopPrice,
        config: Optional[FetchConfig] = None,
    ) -> Optional[ReconcileEffect]:
        """Scrape one stored record and reconcile the result.

        Returns:
            The reconciliation effect, or None for skipped records (unknown
            shop or no url)

        Raises:
            FatalScrapeError: The result signals a shop-wide outage
        """
        if not is_shop_id(record.shop_id):
            self.logger.warning("unsupported_shop", shop_id=record.shop_id, product_id=record.product_id)
            return None

        if not record.url:
            self.logger.warning("record_without_url", shop_id=record.shop_id, product_id=record.product_id)
            return None

        result = await self.scrape(
            ScrapeInput(shop_id=record.shop_id, url=record.url, api=record.api),
            config,
        )

        if is_fatal_result(result):
            self.logger.error(
                "fatal_scrape_result",
                shop=result.shop_name,
                reason=result.reason,
                url=record.url,
                product_id=record.product_id,
            )
            raise FatalScrapeError(result.shop_name, result.reason)

        return await self.reconciliation.apply(record, result)

    async def process_in_rounds(
        self,
        records: Sequence[ProductShopPrice],
        *,
        delay_min_ms: int,
        delay_max_ms: int,
        config: Optional[FetchConfig] = None,
        label: str = "batch",
    ) -> Counter:
        """Process records one per shop per round, pausing between rounds.

        Returns:
            Counter of reconciliation effects (plus ``skipped``)
        """
        stats: Counter = Counter()
        rounds = build_rounds(records)

        for round_index, batch in enumerate(rounds):
            self.logger.info(
                "round_started",
                label=label,
                round=round_index + 1,
                total_rounds=len(rounds),
                batch_size=len(batch),
            )

            effects = await asyncio.gather(
                *(self.process_shop_price(record, config) for _, record in batch)
            )
            for effect in effects:
                stats[effect.value if effect is not None else "skipped"] += 1

            if round_index < len(rounds) - 1:
                await random_pause(delay_min_ms, delay_max_ms)

        return stats

    async def run_prices_batch(
        self,
        *,
        iterations: int = 80,
        urls_per_shop: int = 5,
        delay_min_ms: Optional[int] = None,
        delay_max_ms: Optional[int] = None,
        config: Optional[FetchConfig] = None,
    ) -> Dict[str, int]:
        """Refresh the stalest records of every shop, ``iterations`` times.

        Each iteration selects up to ``urls_per_shop`` due records per shop
        (oldest first), processes them in round-robin rounds and pauses
        before the next iteration.

        Returns:
            Dict with reconciliation effect counts over all iterations
        """
        delay_min_ms = settings.SCRAPE_DELAY_MIN_MS if delay_min_ms is None else delay_min_ms
        delay_max_ms = settings.SCRAPE_DELAY_MAX_MS if delay_max_ms is None else delay_max_ms

        totals: Counter = Counter()
        started_at = time.monotonic()

        for iteration in range(1, iterations + 1):
            iteration_started_at = time.monotonic()

            per_shop: List[List[ProductShopPrice]] = await asyncio.gather(
                *(self.repository.select_stale_records(shop_id, urls_per_shop) for shop_id in ShopId)
            )
            records = [record for shop_records in per_shop for record in shop_records]

            self.logger.info(
                "prices_batch_iteration_started",
                iteration=iteration,
                iterations=iterations,
                urls=len(records),
                shops=len(ShopId),
            )

            stats = await self.process_in_rounds(
                records,
                delay_min_ms=delay_min_ms,
                delay_max_ms=delay_max_ms,
                config=config,
                label=f"iteration_{iteration}",
            )
            totals.update(stats)

            await random_pause(delay_min_ms, delay_max_ms)

            self.logger.info(
                "prices_batch_iteration_completed",
                iteration=iteration,
                iterations=iterations,
                duration_ms=int((time.monotonic() - iteration_started_at) * 1000),
                **stats,
            )

        self.logger.info(
            "prices_batch_completed",
            iterations=iterations,
            duration_seconds=round(time.monotonic() - started_at, 2),
            **totals,
        )
        return dict(totals)

    async def run_deals_refresh(
        self,
        *,
        delay_min_ms: Optional[int] = None,
        delay_max_ms: Optional[int] = None,
        config: Optional[FetchConfig] = None,
    ) -> Dict[str, int]:
        """Re-scrape every record of today's deals, then rebuild the deals set.

        Returns:
            Dict with reconciliation effect counts
        """
        delay_min_ms = settings.SCRAPE_DELAY_MIN_MS if delay_min_ms is None else delay_min_ms
        delay_max_ms = settings.SCRAPE_DELAY_MAX_MS if delay_max_ms is None else delay_max_ms
        started_at = time.monotonic()

        records = await self.repository.select_todays_deal_records()
        self.logger.info("deals_refresh_started", urls=len(records), shops=len(ShopId))

        stats = await self.process_in_rounds(
            records,
            delay_min_ms=delay_min_ms,
            delay_max_ms=delay_max_ms,
            config=config,
            label="deals",
        )

        await self.repository.refresh_todays_deals()

        self.logger.info(
            "deals_refresh_completed",
            duration_seconds=round(time.monotonic() - started_at, 2),
            **stats,
        )
        return dict(stats)
