"""Tests for headless-browser fetch and page/error classification."""

from typing import List, Optional, Union

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from pricewatch.scrapers import reasons
from pricewatch.scrapers.utils import browser_manager
from pricewatch.scrapers.utils.browser_manager import fetch_with_browser, fetch_with_browser_detailed
from pricewatch.scrapers.utils.page_classifier import (
    classify_browser_error,
    detect_block_reason,
    is_interstitial_title,
)


# ============================================================================
# FAKES
# ============================================================================

class FakeResponse:
    def __init__(self, status: int):
        self.status = status


class FakePage:
    def __init__(
        self,
        html: str = "<html><body>ok</body></html>",
        title: Union[str, List[str]] = "Product",
        status: Optional[int] = 200,
        goto_error: Optional[Exception] = None,
        wait_error: Optional[Exception] = None,
        content_error: Optional[Exception] = None,
    ):
        self.html = html
        self.titles = [title] if isinstance(title, str) else list(title)
        self.wait_calls = 0
        self.status = status
        self.goto_error = goto_error
        self.wait_error = wait_error
        self.content_error = content_error
        self.visited: List[str] = []

    async def goto(self, url, wait_until=None, timeout=None):
        self.visited.append(url)
        if self.goto_error:
            raise self.goto_error
        return FakeResponse(self.status) if self.status is not None else None

    async def wait_for_function(self, expression, arg=None, timeout=None):
        self.wait_calls += 1
        if self.wait_error:
            raise self.wait_error

    async def content(self):
        if self.content_error:
            raise self.content_error
        return self.html

    async def title(self):
        # Successive reads walk the list and then stay on its last entry
        return self.titles.pop(0) if len(self.titles) > 1 else self.titles[0]


class FakeSession:
    """Stands in for BrowserSession; records lifecycle calls."""

    instances: List["FakeSession"] = []
    page: FakePage = FakePage()
    start_error: Optional[Exception] = None

    def __init__(self, headless=None):
        self.started = False
        self.closed = 0
        FakeSession.instances.append(self)

    async def start(self):
        if FakeSession.start_error:
            raise FakeSession.start_error
        self.started = True

    async def new_page(self):
        return FakeSession.page

    async def close(self):
        self.closed += 1


@pytest.fixture
def fake_browser(monkeypatch):
    FakeSession.instances = []
    FakeSession.page = FakePage()
    FakeSession.start_error = None
    monkeypatch.setattr(browser_manager, "BrowserSession", FakeSession)
    return FakeSession


async def fetch(url: str = "https://jumbo.example/p/1"):
    return await fetch_with_browser_detailed(url, 1000, challenge_wait_ms=10, settle_ms=0)


# ============================================================================
# FETCH
# ============================================================================

class TestFetchWithBrowserDetailed:

    async def test_success_returns_html(self, fake_browser):
        fake_browser.page = FakePage(html="<html><span>RD$ 100</span></html>")

        result = await fetch()

        assert result.ok is True
        assert "RD$ 100" in result.html
        assert result.reason is None
        assert fake_browser.instances[0].closed == 1

    @pytest.mark.parametrize(
        "status,reason",
        [(403, "blocked"), (429, "rate_limited"), (500, "http_500"), (503, "http_503")],
    )
    async def test_rejected_status_short_circuits(self, fake_browser, status, reason):
        fake_browser.page = FakePage(status=status)

        result = await fetch()

        assert result.ok is False
        assert result.reason == reason
        assert fake_browser.instances[0].closed == 1

    async def test_navigation_exception(self, fake_browser):
        fake_browser.page = FakePage(goto_error=PlaywrightError("net::ERR_ABORTED"))

        result = await fetch()

        assert result.reason == reasons.NAVIGATION_FAILED
        assert fake_browser.instances[0].closed == 1

    async def test_challenge_wait_timeout_is_not_fatal(self, fake_browser):
        fake_browser.page = FakePage(
            title=["Just a moment...", "Leche entera 1L"],
            wait_error=PlaywrightTimeoutError("Timeout 10ms exceeded."),
        )

        result = await fetch()

        assert result.ok is True
        assert fake_browser.page.wait_calls == 1

    async def test_clean_title_skips_challenge_wait(self, fake_browser):
        fake_browser.page = FakePage(title="Leche entera 1L")

        result = await fetch()

        assert result.ok is True
        assert fake_browser.page.wait_calls == 0

    async def test_interstitial_title_waits_for_challenge(self, fake_browser):
        fake_browser.page = FakePage(title=["Checking your browser", "Leche entera 1L"])

        result = await fetch()

        assert result.ok is True
        assert fake_browser.page.wait_calls == 1

    async def test_block_page_detected(self, fake_browser):
        fake_browser.page = FakePage(
            html="<html><h1>Sorry, you have been blocked</h1></html>",
            title="Attention Required! | Cloudflare",
        )

        result = await fetch()

        assert result.reason == reasons.BLOCKED

    async def test_unresolved_challenge_detected(self, fake_browser):
        fake_browser.page = FakePage(html="<html><body>wait</body></html>", title="Just a moment...")

        result = await fetch()

        assert result.reason == reasons.CLOUDFLARE_CHALLENGE

    async def test_blank_page_is_empty_html(self, fake_browser):
        fake_browser.page = FakePage(html="   \n ")

        result = await fetch()

        assert result.reason == reasons.EMPTY_HTML

    async def test_unexpected_exception_is_classified(self, fake_browser):
        fake_browser.page = FakePage(content_error=PlaywrightError("Target page, context or browser has been closed"))

        result = await fetch()

        assert result.reason == reasons.BROWSER_CLOSED
        assert fake_browser.instances[0].closed == 1

    async def test_launch_failure(self, fake_browser):
        fake_browser.start_error = RuntimeError("something odd")

        result = await fetch()

        assert result.reason == reasons.BROWSER_LAUNCH_FAILED
        assert fake_browser.instances[0].closed == 1

    async def test_each_call_uses_a_fresh_browser(self, fake_browser):
        await fetch()
        await fetch()

        assert len(fake_browser.instances) == 2
        assert all(session.closed == 1 for session in fake_browser.instances)

    async def test_fetch_with_browser_returns_html_or_none(self, fake_browser, monkeypatch):
        fake_browser.page = FakePage(html="<p>hi</p>")
        monkeypatch.setattr(browser_manager.settings, "BROWSER_SETTLE_MS", 0)
        monkeypatch.setattr(browser_manager.settings, "BROWSER_CHALLENGE_WAIT_MS", 10)

        assert await fetch_with_browser("https://jumbo.example/p/1") == "<p>hi</p>"

        fake_browser.page = FakePage(status=403)
        assert await fetch_with_browser("https://jumbo.example/p/1") is None


# ============================================================================
# CLASSIFICATION
# ============================================================================

class TestClassifyBrowserError:

    def test_timeout_types_come_first(self):
        assert classify_browser_error(PlaywrightTimeoutError("net::ERR_NAME_NOT_RESOLVED")) == reasons.NAVIGATION_TIMEOUT
        assert classify_browser_error(TimeoutError()) == reasons.NAVIGATION_TIMEOUT

    @pytest.mark.parametrize(
        "message,reason",
        [
            ("page.goto: Timeout 60000ms exceeded", "navigation_timeout"),
            ("net::ERR_NAME_NOT_RESOLVED at https://x", "dns_failed"),
            ("net::ERR_CONNECTION_RESET", "network_error"),
            ("net::ERR_CONNECTION_REFUSED", "network_error"),
            ("net::ERR_INTERNET_DISCONNECTED", "network_error"),
            ("net::ERR_TUNNEL_CONNECTION_FAILED", "network_error"),
            ("Browser has been closed", "browser_closed"),
            ("browserType.launch: Failed to launch chromium", "browser_launch_failed"),
            ("Executable doesn't exist at /ms-playwright/chromium", "browser_launch_failed"),
            ("something else entirely", "request_failed"),
        ],
    )
    def test_message_fallback(self, message, reason):
        assert classify_browser_error(PlaywrightError(message)) == reason


class TestDetectBlockReason:

    def test_normal_page(self):
        assert detect_block_reason("<html>Leche 1L</html>", "Leche entera") is None

    @pytest.mark.parametrize(
        "html",
        [
            "<div>Sorry, you have been BLOCKED</div>",
            "<span class='cf-error-code'>1020</span>",
            "<p>Performance & security by Cloudflare</p>",
        ],
    )
    def test_block_markers_in_html(self, html):
        assert detect_block_reason(html, "Product") == reasons.BLOCKED

    def test_block_marker_in_title(self):
        assert detect_block_reason("<html></html>", "Attention Required!") == reasons.BLOCKED

    def test_challenge_titles(self):
        assert detect_block_reason("<html></html>", "Just a moment...") == reasons.CLOUDFLARE_CHALLENGE
        assert detect_block_reason("<html></html>", "Checking your browser") == reasons.CLOUDFLARE_CHALLENGE

    def test_interstitial_title(self):
        assert is_interstitial_title("Just a moment...")
        assert not is_interstitial_title("Leche entera 1L")
