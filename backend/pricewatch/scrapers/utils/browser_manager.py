"""Headless-browser fetch with stealth configuration and block detection.

Every call launches its own Chromium instance and tears it down before
returning, so no browser state is shared between fetches. Failures never
escape: they are reported as a ``BrowserFetchResult`` with a reason from
the shared vocabulary.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Optional

import structlog
from playwright.async_api import (
    Browser,
    BrowserContext,
    Error as PlaywrightError,
    Page,
    Playwright,
    async_playwright,
)

from pricewatch.config import settings
from pricewatch.scrapers import reasons
from pricewatch.scrapers.utils.page_classifier import (
    INTERSTITIAL_TITLE_MARKERS,
    classify_browser_error,
    detect_block_reason,
    is_interstitial_title,
)
from pricewatch.scrapers.utils.user_agents import ACCEPT_LANGUAGE, BROWSER_USER_AGENT

logger = structlog.get_logger(__name__)


LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-blink-features=AutomationControlled",
]

VIEWPORT = {"width": 1920, "height": 1080}

# Minimal stealth JS to mask automation signals
STEALTH_JS = """
Object.defineProperty(navigator, 'webdriver', { get: () => false });
Object.defineProperty(navigator, 'plugins', { get: () => [1, 2, 3, 4, 5] });
Object.defineProperty(navigator, 'languages', { get: () => ['en-US', 'en'] });
window.chrome = { runtime: {} };
"""

# Resolves once the title no longer looks like an interstitial
_TITLE_SETTLED_JS = (
    "(markers) => { const t = document.title.toLowerCase();"
    " return !markers.some((m) => t.includes(m)); }"
)


@dataclass(frozen=True)
class BrowserFetchResult:
    """Either ``ok`` with the page HTML, or not ok with a failure reason."""

    ok: bool
    html: Optional[str] = None
    reason: Optional[str] = None

    @classmethod
    def success(cls, html: str) -> "BrowserFetchResult":
        return cls(ok=True, html=html)

    @classmethod
    def failure(cls, reason: str) -> "BrowserFetchResult":
        return cls(ok=False, reason=reason)


class BrowserSession:
    """One isolated Playwright browser with a stealth-configured context.

    Usable as ``async with BrowserSession() as session``; ``close()`` is
    idempotent and never raises.
    """

    def __init__(self, headless: Optional[bool] = None):
        self._headless = settings.BROWSER_HEADLESS if headless is None else headless
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None

    async def start(self) -> None:
        """Launch Chromium and prepare the stealth context."""
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(
            headless=self._headless,
            args=LAUNCH_ARGS,
        )
        self._context = await self._browser.new_context(
            user_agent=BROWSER_USER_AGENT,
            viewport=VIEWPORT,
            locale="en-US",
            extra_http_headers={"Accept-Language": ACCEPT_LANGUAGE},
        )
        await self._context.add_init_script(STEALTH_JS)

    async def new_page(self) -> Page:
        if self._context is None:
            raise RuntimeError("BrowserSession.start() must be called first")
        return await self._context.new_page()

    async def close(self) -> None:
        """Close context, browser and driver, logging any teardown error."""
        context, self._context = self._context, None
        browser, self._browser = self._browser, None
        driver, self._playwright = self._playwright, None

        for name, close in (
            ("context", context.close if context else None),
            ("browser", browser.close if browser else None),
            ("playwright", driver.stop if driver else None),
        ):
            if close is None:
                continue
            try:
                await close()
            except Exception as e:
                logger.warning("browser_teardown_failed", stage=name, error=str(e))

    async def __aenter__(self) -> "BrowserSession":
        try:
            await self.start()
        except BaseException:
            await self.close()
            raise
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


def _trace(event: str, **context) -> None:
    if settings.browser_debug_enabled():
        logger.info(event, **context)


def _status_reason(status: Optional[int]) -> Optional[str]:
    if status == 403:
        return reasons.BLOCKED
    if status == 429:
        return reasons.RATE_LIMITED
    if status is not None and status >= 500:
        return reasons.http_status_reason(status)
    return None


async def fetch_with_browser_detailed(
    url: str,
    timeout_ms: Optional[int] = None,
    *,
    challenge_wait_ms: Optional[int] = None,
    settle_ms: Optional[int] = None,
) -> BrowserFetchResult:
    """Render a page in a fresh headless browser and classify the outcome.

    Args:
        url: Page to load
        timeout_ms: Navigation timeout
        challenge_wait_ms: How long to wait for a challenge title to clear
        settle_ms: Extra delay for late client-side rendering

    Returns:
        BrowserFetchResult with the final HTML, or the failure reason
    """
    timeout_ms = settings.BROWSER_TIMEOUT_MS if timeout_ms is None else timeout_ms
    challenge_wait_ms = settings.BROWSER_CHALLENGE_WAIT_MS if challenge_wait_ms is None else challenge_wait_ms
    settle_ms = settings.BROWSER_SETTLE_MS if settle_ms is None else settle_ms

    started_at = time.monotonic()

    def elapsed_ms() -> int:
        return int((time.monotonic() - started_at) * 1000)

    _trace("browser_fetch_start", url=url, timeout_ms=timeout_ms)

    session = BrowserSession()
    try:
        await session.start()
    except Exception as e:
        reason = classify_browser_error(e)
        if reason == reasons.REQUEST_FAILED:
            reason = reasons.BROWSER_LAUNCH_FAILED
        logger.warning("browser_launch_failed", url=url, reason=reason, error=str(e))
        await session.close()
        return BrowserFetchResult.failure(reason)

    try:
        page = await session.new_page()

        try:
            response = await page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
        except Exception as e:
            _trace("browser_goto_failed", url=url, error=str(e), elapsed_ms=elapsed_ms())
            return BrowserFetchResult.failure(reasons.NAVIGATION_FAILED)

        status = response.status if response is not None else None
        _trace("browser_goto_completed", url=url, status=status)

        status_reason = _status_reason(status)
        if status_reason:
            _trace("browser_http_status_rejected", url=url, status=status, reason=status_reason)
            return BrowserFetchResult.failure(status_reason)

        if is_interstitial_title(await page.title()):
            _trace("browser_challenge_detected", url=url)
            try:
                await page.wait_for_function(
                    _TITLE_SETTLED_JS,
                    arg=list(INTERSTITIAL_TITLE_MARKERS),
                    timeout=challenge_wait_ms,
                )
            except PlaywrightError as e:
                # Still inspect the DOM: the challenge may have cleared silently
                _trace("browser_challenge_wait_expired", url=url, error=str(e))

        await asyncio.sleep(settle_ms / 1000.0)

        html, title = await asyncio.gather(page.content(), page.title())
        _trace(
            "browser_page_loaded",
            url=url,
            status=status,
            html_length=len(html),
            title=title,
            elapsed_ms=elapsed_ms(),
        )

        block_reason = detect_block_reason(html, title)
        if block_reason:
            logger.warning("browser_block_detected", url=url, status=status, reason=block_reason, title=title)
            return BrowserFetchResult.failure(block_reason)

        if not html.strip():
            return BrowserFetchResult.failure(reasons.EMPTY_HTML)

        _trace("browser_fetch_ok", url=url, status=status, elapsed_ms=elapsed_ms())
        return BrowserFetchResult.success(html)

    except Exception as e:
        reason = classify_browser_error(e)
        logger.warning(
            "browser_fetch_exception",
            url=url,
            reason=reason,
            error_type=type(e).__name__,
            error=str(e),
            elapsed_ms=elapsed_ms(),
        )
        return BrowserFetchResult.failure(reason)

    finally:
        await session.close()
        _trace("browser_closed", url=url)


async def fetch_with_browser(url: str, timeout_ms: Optional[int] = None) -> Optional[str]:
    """Convenience wrapper returning only the HTML (None on any failure)."""
    result = await fetch_with_browser_detailed(url, timeout_ms)
    return result.html if result.ok else None
