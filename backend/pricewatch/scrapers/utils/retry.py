"""HTTP fetch with bounded retry and exponential backoff.

Rate-limit responses (429/503) and transport failures are retried with
different cooldowns; every other status is handed back to the adapter
untouched. Exhausting the attempts returns ``None`` instead of raising.
"""

import asyncio
import random
from typing import Any, Dict, Optional

import httpx
import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
)

from pricewatch.scrapers.types import FetchConfig


logger = structlog.get_logger(__name__)

RETRY_STATUS_CODES = frozenset({429, 503})

# Failures that count as a failed attempt rather than a response
TRANSPORT_ERRORS = (httpx.HTTPError, httpx.InvalidURL)

# Backoff: 2**attempt * base + uniform(0, jitter), in milliseconds
RATE_LIMIT_BACKOFF_MS = 5000
RATE_LIMIT_JITTER_MS = 2000
TRANSPORT_BACKOFF_MS = 2000
TRANSPORT_JITTER_MS = 1000


def compute_backoff_ms(attempt: int, rate_limited: bool) -> float:
    """Delay before the attempt following ``attempt`` (0-based).

    Args:
        attempt: Index of the attempt that just failed
        rate_limited: True for 429/503 responses, False for transport errors

    Returns:
        Delay in milliseconds
    """
    if rate_limited:
        base, jitter = RATE_LIMIT_BACKOFF_MS, RATE_LIMIT_JITTER_MS
    else:
        base, jitter = TRANSPORT_BACKOFF_MS, TRANSPORT_JITTER_MS
    return (2 ** attempt) * base + random.uniform(0, jitter)


def _is_rate_limited(response: Optional[httpx.Response]) -> bool:
    return response is not None and response.status_code in RETRY_STATUS_CODES


def _wait_for(retry_state: RetryCallState) -> float:
    """tenacity wait strategy: pick the backoff class from the last outcome."""
    rate_limited = not retry_state.outcome.failed
    delay_ms = compute_backoff_ms(retry_state.attempt_number - 1, rate_limited)
    return delay_ms / 1000.0


def _log_retry(retry_state: RetryCallState) -> None:
    outcome = retry_state.outcome
    if outcome.failed:
        cause = type(outcome.exception()).__name__
    else:
        cause = f"http_{outcome.result().status_code}"
    logger.warning(
        "http_retry_scheduled",
        url=retry_state.kwargs.get("url"),
        attempt=retry_state.attempt_number,
        cause=cause,
        sleep_seconds=round(retry_state.next_action.sleep, 2) if retry_state.next_action else None,
    )


def _give_up(retry_state: RetryCallState) -> None:
    outcome = retry_state.outcome
    logger.warning(
        "http_retries_exhausted",
        url=retry_state.kwargs.get("url"),
        attempts=retry_state.attempt_number,
        failed=outcome.failed,
    )
    return None


async def _sleep(seconds: float) -> None:
    await asyncio.sleep(seconds)


async def _send(
    client: httpx.AsyncClient,
    *,
    url: str,
    method: str,
    headers: Optional[Dict[str, str]],
    json: Any,
    timeout: float,
) -> httpx.Response:
    return await client.request(method, url, headers=headers, json=json, timeout=timeout)


async def fetch_with_retry(
    url: str,
    *,
    method: str = "GET",
    headers: Optional[Dict[str, str]] = None,
    json: Any = None,
    config: Optional[FetchConfig] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> Optional[httpx.Response]:
    """Fetch a URL, retrying rate limits and transport failures.

    Args:
        url: Target URL
        method: HTTP method
        headers: Request headers
        json: Optional JSON body
        config: Attempt count and per-attempt timeout
        client: Shared client; a short-lived one is created when omitted

    Returns:
        The first response that is not 429/503, or None once all
        attempts are used up
    """
    config = config or FetchConfig()

    retrying = AsyncRetrying(
        stop=stop_after_attempt(config.attempts),
        wait=_wait_for,
        retry=retry_if_exception_type(TRANSPORT_ERRORS) | retry_if_result(_is_rate_limited),
        before_sleep=_log_retry,
        retry_error_callback=_give_up,
        sleep=_sleep,
    )

    if client is not None:
        return await retrying(
            _send, client, url=url, method=method, headers=headers, json=json,
            timeout=config.timeout_seconds,
        )

    async with httpx.AsyncClient(follow_redirects=True) as owned_client:
        return await retrying(
            _send, owned_client, url=url, method=method, headers=headers, json=json,
            timeout=config.timeout_seconds,
        )
