"""Custom exception classes for the application."""


class PriceWatchException(Exception):
    """Base exception for all PriceWatch errors."""

    def __init__(self, message: str = "An unexpected error occurred"):
        self.message = message
        super().__init__(self.message)


class AdapterNotRegisteredError(PriceWatchException):
    """Raised when no adapter is registered for a shop id."""

    def __init__(self, shop_id: int):
        self.shop_id = shop_id
        super().__init__(f"No adapter registered for shop id {shop_id}")


class InvalidInputError(PriceWatchException):
    """Raised when a batch input file or option fails validation."""


class FatalScrapeError(PriceWatchException):
    """Raised by batch jobs when a scrape result signals a systemic outage.

    Unlike ordinary per-item failures, which are folded into reconciliation,
    this aborts the whole run.
    """

    def __init__(self, shop_name: str, reason: str):
        self.shop_name = shop_name
        self.reason = reason
        super().__init__(f"{shop_name} returned {reason}")
