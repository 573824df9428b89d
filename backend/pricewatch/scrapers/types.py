"""Scrape inputs, fetch configuration and normalized scrape results.

Every adapter turns a ``ScrapeInput`` into exactly one ``ScrapeResult``:
``ScrapeOk``, ``ScrapeNotFound`` or ``ScrapeError``. Results are immutable
and consumed once by the reconciliation service.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, ClassVar, Dict, Optional, Union

from pricewatch.config import settings


class ShopId(IntEnum):
    """Storefronts tracked by the scraper."""

    SIRENA = 1
    NACIONAL = 2
    JUMBO = 3
    PLAZA_LAMA = 4
    PRICESMART = 5
    BRAVO = 6


SHOP_NAMES: Dict[ShopId, str] = {
    ShopId.SIRENA: "sirena",
    ShopId.NACIONAL: "nacional",
    ShopId.JUMBO: "jumbo",
    ShopId.PLAZA_LAMA: "plaza_lama",
    ShopId.PRICESMART: "pricesmart",
    ShopId.BRAVO: "bravo",
}


def is_shop_id(value: Any) -> bool:
    """Check whether a raw value (e.g. a DB column) names a known shop."""
    if isinstance(value, bool) or not isinstance(value, int):
        return False
    return value in {int(shop) for shop in ShopId}


@dataclass(frozen=True)
class ScrapeInput:
    """One product at one shop."""

    shop_id: ShopId
    url: str
    api: Optional[str] = None

    def __post_init__(self):
        """Coerce the shop id and validate the locator."""
        if not is_shop_id(self.shop_id):
            raise ValueError(f"Invalid shop_id: {self.shop_id!r}")
        object.__setattr__(self, "shop_id", ShopId(self.shop_id))
        if not self.url:
            raise ValueError("url is required")


@dataclass(frozen=True)
class FetchConfig:
    """Per-request limits handed to adapters."""

    max_retries: int = field(default_factory=lambda: settings.SCRAPE_MAX_RETRIES)
    timeout_ms: int = field(default_factory=lambda: settings.SCRAPE_TIMEOUT_MS)

    @property
    def attempts(self) -> int:
        """Number of attempts a retrying fetch may make (at least one)."""
        return max(1, self.max_retries)

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000.0


@dataclass(frozen=True)
class ScrapeOk:
    """Price successfully extracted. Prices are decimal strings as published."""

    shop_id: ShopId
    current_price: str
    regular_price: Optional[str] = None

    status: ClassVar[str] = "ok"

    @property
    def shop_name(self) -> str:
        return SHOP_NAMES[self.shop_id]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "shopId": int(self.shop_id),
            "shopName": self.shop_name,
            "currentPrice": self.current_price,
            "regularPrice": self.regular_price,
        }


@dataclass(frozen=True)
class ScrapeNotFound:
    """The listing is gone (or has no price). ``hide`` asks reconciliation to hide it."""

    shop_id: ShopId
    reason: str
    hide: bool = True

    status: ClassVar[str] = "not_found"

    @property
    def shop_name(self) -> str:
        return SHOP_NAMES[self.shop_id]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "shopId": int(self.shop_id),
            "shopName": self.shop_name,
            "reason": self.reason,
            "hide": self.hide,
        }


@dataclass(frozen=True)
class ScrapeError:
    """The fetch or parse failed.

    ``retryable`` is advisory for callers that re-batch failures later;
    nothing in the scheduler retries across rounds.
    """

    shop_id: ShopId
    reason: str
    retryable: bool = True
    hide: bool = False

    status: ClassVar[str] = "error"

    @property
    def shop_name(self) -> str:
        return SHOP_NAMES[self.shop_id]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "shopId": int(self.shop_id),
            "shopName": self.shop_name,
            "reason": self.reason,
            "retryable": self.retryable,
            "hide": self.hide,
        }


ScrapeResult = Union[ScrapeOk, ScrapeNotFound, ScrapeError]
