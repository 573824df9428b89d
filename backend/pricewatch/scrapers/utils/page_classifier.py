"""Classify anti-bot pages and browser failures into shared reasons."""

from typing import Optional

from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from pricewatch.scrapers import reasons


# Interstitial titles served while a JS challenge runs
CHALLENGE_TITLE_MARKERS = ("just a moment", "checking your browser")

# Markers of a hard block page; matched against lowercased HTML
BLOCK_HTML_MARKERS = (
    "sorry, you have been blocked",
    "attention required",
    "cf-error-code",
    "cloudflare",
)
BLOCK_TITLE_MARKERS = ("attention required",)

# Title markers that keep the challenge wait going (block titles included)
INTERSTITIAL_TITLE_MARKERS = CHALLENGE_TITLE_MARKERS + BLOCK_TITLE_MARKERS

NETWORK_ERROR_MARKERS = (
    "net::err_connection",
    "net::err_internet_disconnected",
    "net::err_tunnel_connection_failed",
)


def is_interstitial_title(title: str) -> bool:
    """True while the page title still looks like a challenge or block page."""
    lowered = title.lower()
    return any(marker in lowered for marker in INTERSTITIAL_TITLE_MARKERS)


def detect_block_reason(html: str, title: str) -> Optional[str]:
    """Inspect the final page for block or challenge signatures.

    Args:
        html: Final page HTML
        title: Final page title

    Returns:
        ``blocked``, ``cloudflare_challenge`` or None for a normal page
    """
    lower_html = html.lower()
    lower_title = title.lower()

    if any(marker in lower_html for marker in BLOCK_HTML_MARKERS) or any(
        marker in lower_title for marker in BLOCK_TITLE_MARKERS
    ):
        return reasons.BLOCKED

    if any(marker in lower_title for marker in CHALLENGE_TITLE_MARKERS):
        return reasons.CLOUDFLARE_CHALLENGE

    return None


def classify_browser_error(error: BaseException) -> str:
    """Map a browser-automation exception onto the shared reason vocabulary.

    Exception types are checked first; message substrings are the fallback
    for Playwright's generic ``Error``, which carries Chromium net codes
    only in its text.
    """
    if isinstance(error, (PlaywrightTimeoutError, TimeoutError)):
        return reasons.NAVIGATION_TIMEOUT

    message = str(error).lower()

    if "timeout" in message:
        return reasons.NAVIGATION_TIMEOUT

    if "net::err_name_not_resolved" in message:
        return reasons.DNS_FAILED

    if any(marker in message for marker in NETWORK_ERROR_MARKERS):
        return reasons.NETWORK_ERROR

    if "browser" in message and "closed" in message:
        return reasons.BROWSER_CLOSED

    if "failed to launch" in message or "executable doesn't exist" in message:
        return reasons.BROWSER_LAUNCH_FAILED

    return reasons.REQUEST_FAILED
