"""Command-line entry point.

Usage:
    pricewatch scrape --input products.json --output results.json
    pricewatch prices-batch --iterations 80 --urls-per-shop 5
    pricewatch deals
    pricewatch schedule
"""

import argparse
import asyncio
import json
import sys
from typing import List, Optional

import structlog

from pricewatch.config import settings
from pricewatch.core.exceptions import PriceWatchException
from pricewatch.core.logging import configure_logging
from pricewatch.db.session import async_session_factory, engine
from pricewatch.schemas.scrape_batch import load_batch_file, merge_result
from pricewatch.scrapers.register_adapters import register_all_adapters
from pricewatch.scrapers.round_robin import ProgressEvent, scrape_many_round_robin
from pricewatch.scrapers.scheduler import ScraperScheduler
from pricewatch.scrapers.scraper_service import ScraperService
from pricewatch.scrapers.types import FetchConfig

logger = structlog.get_logger(__name__)


def positive_int(raw: str) -> int:
    """argparse type for numeric options that must be > 0."""
    try:
        value = int(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid numeric value: {raw}")
    if value <= 0:
        raise argparse.ArgumentTypeError(f"invalid numeric value: {raw}")
    return value


def _add_request_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--delay-min",
        type=positive_int,
        default=settings.SCRAPE_DELAY_MIN_MS,
        help=f"Minimum pause between rounds in ms (default: {settings.SCRAPE_DELAY_MIN_MS})",
    )
    parser.add_argument(
        "--delay-max",
        type=positive_int,
        default=settings.SCRAPE_DELAY_MAX_MS,
        help=f"Maximum pause between rounds in ms (default: {settings.SCRAPE_DELAY_MAX_MS})",
    )
    parser.add_argument(
        "--timeout",
        type=positive_int,
        default=settings.SCRAPE_TIMEOUT_MS,
        help=f"Per-attempt request timeout in ms (default: {settings.SCRAPE_TIMEOUT_MS})",
    )
    parser.add_argument(
        "--retries",
        type=positive_int,
        default=settings.SCRAPE_MAX_RETRIES,
        help=f"Attempts per request (default: {settings.SCRAPE_MAX_RETRIES})",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pricewatch",
        description="Track shop prices: scrape, reconcile and refresh deals",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  pricewatch scrape --input products.json --output results.json
  pricewatch prices-batch --iterations 10 --urls-per-shop 5
  pricewatch deals --delay-min 1000 --delay-max 2000
  pricewatch schedule
        """,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    scrape = subparsers.add_parser("scrape", help="Scrape a JSON file of product locators")
    scrape.add_argument("--input", required=True, help="JSON array of {id?, shopId, url, api?}")
    scrape.add_argument("--output", help="Write results here instead of stdout")
    _add_request_options(scrape)

    batch = subparsers.add_parser("prices-batch", help="Refresh the stalest stored prices")
    batch.add_argument(
        "--iterations",
        type=positive_int,
        default=80,
        help="Number of select/scrape iterations (default: 80)",
    )
    batch.add_argument(
        "--urls-per-shop",
        type=positive_int,
        default=5,
        help="Records per shop per iteration (default: 5)",
    )
    _add_request_options(batch)

    deals = subparsers.add_parser("deals", help="Re-scrape today's deals and rebuild them")
    _add_request_options(deals)

    schedule = subparsers.add_parser("schedule", help="Run both batch jobs periodically")
    schedule.add_argument(
        "--prices-interval",
        type=positive_int,
        default=settings.PRICES_BATCH_INTERVAL_MINUTES,
        help="Minutes between prices batches",
    )
    schedule.add_argument(
        "--deals-interval",
        type=positive_int,
        default=settings.DEALS_REFRESH_INTERVAL_MINUTES,
        help="Minutes between deals refreshes",
    )
    _add_request_options(schedule)

    return parser


def _request_config(args: argparse.Namespace) -> FetchConfig:
    return FetchConfig(max_retries=args.retries, timeout_ms=args.timeout)


def _log_progress(event: ProgressEvent) -> None:
    logger.info(
        "scrape_progress",
        round=event.round,
        total_rounds=event.total_rounds,
        processed=event.processed,
        total=event.total,
    )


async def run_scrape(args: argparse.Namespace) -> None:
    rows = load_batch_file(args.input)

    results = await scrape_many_round_robin(
        [row.to_input() for row in rows],
        delay_min_ms=args.delay_min,
        delay_max_ms=args.delay_max,
        request_config=_request_config(args),
        on_progress=_log_progress,
    )

    merged = [merge_result(row, result) for row, result in zip(rows, results)]
    output = json.dumps(merged, indent=2, ensure_ascii=False)

    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(output)
        logger.info("scrape_results_written", rows=len(merged), path=args.output)
        return

    sys.stdout.write(f"{output}\n")


async def run_prices_batch(args: argparse.Namespace) -> None:
    service = ScraperService(async_session_factory)
    await service.run_prices_batch(
        iterations=args.iterations,
        urls_per_shop=args.urls_per_shop,
        delay_min_ms=args.delay_min,
        delay_max_ms=args.delay_max,
        config=_request_config(args),
    )


async def run_deals(args: argparse.Namespace) -> None:
    service = ScraperService(async_session_factory)
    await service.run_deals_refresh(
        delay_min_ms=args.delay_min,
        delay_max_ms=args.delay_max,
        config=_request_config(args),
    )


async def run_schedule(args: argparse.Namespace) -> None:
    scheduler = ScraperScheduler(
        async_session_factory,
        job_kwargs={
            "delay_min_ms": args.delay_min,
            "delay_max_ms": args.delay_max,
            "config": _request_config(args),
        },
    )
    scheduler.add_default_jobs(
        prices_interval_minutes=args.prices_interval,
        deals_interval_minutes=args.deals_interval,
    )
    scheduler.start()
    try:
        # Runs until cancelled (Ctrl+C)
        await asyncio.Event().wait()
    finally:
        scheduler.stop()


COMMANDS = {
    "scrape": run_scrape,
    "prices-batch": run_prices_batch,
    "deals": run_deals,
    "schedule": run_schedule,
}


async def _run(args: argparse.Namespace) -> int:
    command = args.command.replace("-", "_")
    try:
        await COMMANDS[args.command](args)
    except PriceWatchException as e:
        logger.error(f"{command}_failed", error=e.message)
        return 1
    except Exception as e:
        logger.error(f"{command}_failed", error=str(e), exc_info=True)
        return 1
    finally:
        await engine.dispose()
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Parse arguments and run the chosen command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(settings.LOG_LEVEL, settings.LOG_JSON)
    register_all_adapters()

    try:
        return asyncio.run(_run(args))
    except KeyboardInterrupt:
        logger.info("interrupted", command=args.command)
        return 130


if __name__ == "__main__":
    sys.exit(main())
