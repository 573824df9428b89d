"""Round-robin batch scraping across shops.

Inputs are grouped by shop and interleaved so that each round sends at
most one request to every shop. Rounds run concurrently inside and are
paced by a randomized delay between them, keeping per-shop request rates
low without serializing the whole batch.
"""

import asyncio
import random
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional, Sequence, Tuple, TypeVar

import structlog

from pricewatch.config import settings
from pricewatch.scrapers import reasons
from pricewatch.scrapers.factory import scrape_price
from pricewatch.scrapers.types import FetchConfig, ScrapeError, ScrapeInput, ScrapeResult

logger = structlog.get_logger(__name__)

T = TypeVar("T")

ScrapeFn = Callable[[ScrapeInput, Optional[FetchConfig]], Awaitable[ScrapeResult]]


@dataclass(frozen=True)
class ProgressEvent:
    """Reported after every completed round (``round`` is 1-based)."""

    round: int
    total_rounds: int
    processed: int
    total: int


ProgressCallback = Callable[[ProgressEvent], None]


async def _sleep(seconds: float) -> None:
    await asyncio.sleep(seconds)


def random_delay_ms(delay_min_ms: int, delay_max_ms: int) -> float:
    """Uniform delay in [min, max] milliseconds (bounds may be given in any order)."""
    low, high = sorted((delay_min_ms, delay_max_ms))
    return random.uniform(low, high)


async def random_pause(delay_min_ms: int, delay_max_ms: int) -> None:
    await _sleep(random_delay_ms(delay_min_ms, delay_max_ms) / 1000.0)


def group_by_shop(items: Sequence[T]) -> Dict[int, List[Tuple[int, T]]]:
    """Group items by ``shop_id``, keeping (original index, item) in input order."""
    groups: Dict[int, List[Tuple[int, T]]] = {}
    for index, item in enumerate(items):
        groups.setdefault(item.shop_id, []).append((index, item))
    return groups


def build_rounds(items: Sequence[T]) -> List[List[Tuple[int, T]]]:
    """Round r holds the r-th item of every shop that has one.

    Works for anything with a ``shop_id`` (scrape inputs, stored records).
    """
    groups = list(group_by_shop(items).values())
    total_rounds = max((len(group) for group in groups), default=0)
    return [
        [group[round_index] for group in groups if round_index < len(group)]
        for round_index in range(total_rounds)
    ]


async def scrape_many_round_robin(
    inputs: Sequence[ScrapeInput],
    *,
    delay_min_ms: Optional[int] = None,
    delay_max_ms: Optional[int] = None,
    request_config: Optional[FetchConfig] = None,
    on_progress: Optional[ProgressCallback] = None,
    scrape: Optional[ScrapeFn] = None,
) -> List[ScrapeResult]:
    """Scrape a batch of inputs in per-shop round-robin order.

    Args:
        inputs: Inputs in caller order
        delay_min_ms: Lower bound of the pause between rounds
        delay_max_ms: Upper bound of the pause between rounds
        request_config: Retry/timeout limits handed to every adapter call
        on_progress: Called after each round with a ProgressEvent
        scrape: Per-input dispatcher (defaults to registry dispatch)

    Returns:
        One result per input, index-aligned with ``inputs``. Inputs that
        never ran are reported as ``not_processed`` errors.
    """
    delay_min_ms = settings.SCRAPE_DELAY_MIN_MS if delay_min_ms is None else delay_min_ms
    delay_max_ms = settings.SCRAPE_DELAY_MAX_MS if delay_max_ms is None else delay_max_ms
    scrape = scrape or scrape_price

    rounds = build_rounds(inputs)
    total_rounds = len(rounds)
    results: List[Optional[ScrapeResult]] = [None] * len(inputs)
    processed = 0

    for round_index, batch in enumerate(rounds):
        round_results = await asyncio.gather(
            *(scrape(item, request_config) for _, item in batch)
        )

        for (index, _), result in zip(batch, round_results):
            if results[index] is None:
                processed += 1
            results[index] = result

        logger.debug(
            "round_completed",
            round=round_index + 1,
            total_rounds=total_rounds,
            batch_size=len(batch),
            processed=processed,
        )

        if on_progress is not None:
            on_progress(
                ProgressEvent(
                    round=round_index + 1,
                    total_rounds=total_rounds,
                    processed=processed,
                    total=len(inputs),
                )
            )

        if round_index < total_rounds - 1:
            await random_pause(delay_min_ms, delay_max_ms)

    return [
        result if result is not None else ScrapeError(
            shop_id=inputs[index].shop_id,
            reason=reasons.NOT_PROCESSED,
            retryable=True,
        )
        for index, result in enumerate(results)
    ]
