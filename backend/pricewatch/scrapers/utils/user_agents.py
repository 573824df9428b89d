"""User-Agent rotation and browser-like header sets."""

import random
from typing import Dict, List


# Recent desktop Chrome builds; the sec-ch-ua hints below must stay consistent
USER_AGENTS: List[str] = [
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/143.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/143.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/142.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/142.0.0.0 Safari/537.36",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/143.0.0.0 Safari/537.36",
]

# Fixed UA for the headless browser so navigator and headers agree
BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

ACCEPT_LANGUAGE = "en-US,en;q=0.9"

DOCUMENT_ACCEPT = (
    "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,"
    "image/apng,*/*;q=0.8,application/signed-exchange;v=b3;q=0.7"
)


def get_random_user_agent() -> str:
    """Get a random user-agent string from the pool.

    Returns:
        Random user-agent string
    """
    return random.choice(USER_AGENTS)


def common_chrome_headers(user_agent: str) -> Dict[str, str]:
    """Headers every Chrome request carries, regardless of shop.

    Args:
        user_agent: User-agent string to send

    Returns:
        Header dict to be extended with shop-specific headers
    """
    return {
        "User-Agent": user_agent,
        "Accept-Encoding": "gzip, deflate, br, zstd",
        "Accept-Language": ACCEPT_LANGUAGE,
        "sec-ch-ua": '"Chromium";v="143", "Not A(Brand";v="24"',
        "sec-ch-ua-mobile": "?0",
        "sec-ch-ua-platform": '"macOS"',
    }


def document_navigation_headers(referer: str) -> Dict[str, str]:
    """Headers of a top-level same-origin page navigation."""
    return {
        **common_chrome_headers(get_random_user_agent()),
        "Accept": DOCUMENT_ACCEPT,
        "Referer": referer,
        "sec-fetch-dest": "document",
        "sec-fetch-mode": "navigate",
        "sec-fetch-site": "same-origin",
        "sec-fetch-user": "?1",
        "upgrade-insecure-requests": "1",
        "priority": "u=0, i",
    }
