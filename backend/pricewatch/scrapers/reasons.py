"""Shared failure reason vocabulary.

Every adapter and fetch strategy reports failures with one of these
strings so downstream classification stays stable across shops.
"""

# Transport / browser
REQUEST_FAILED = "request_failed"
NAVIGATION_FAILED = "navigation_failed"
NAVIGATION_TIMEOUT = "navigation_timeout"
DNS_FAILED = "dns_failed"
NETWORK_ERROR = "network_error"
BROWSER_CLOSED = "browser_closed"
BROWSER_LAUNCH_FAILED = "browser_launch_failed"

# Anti-bot
BLOCKED = "blocked"
CLOUDFLARE_CHALLENGE = "cloudflare_challenge"
RATE_LIMITED = "rate_limited"

# Payload
EMPTY_HTML = "empty_html"
INVALID_JSON = "invalid_json"
INVALID_PAYLOAD = "invalid_payload"
PRODUCT_NOT_FOUND = "product_not_found"
PRICE_NOT_FOUND = "price_not_found"
UNIT_PRICE_NOT_FOUND = "unit_price_not_found"
DO_PRICE_NOT_FOUND = "do_price_not_found"
MISSING_API = "missing_api"

# Scheduler / jobs
NOT_PROCESSED = "not_processed"
BACKEND_503 = "backend_503"


def http_status_reason(status: int) -> str:
    """Reason for a 5xx page served to the browser, e.g. ``http_502``."""
    return f"http_{status}"
