"""Factory for creating and managing shop adapter instances."""

from typing import Dict, List, Optional, Type

import httpx
import structlog

from pricewatch.core.exceptions import AdapterNotRegisteredError
from pricewatch.scrapers.base import BaseAdapter, BaseBrowserAdapter, BaseHTTPAdapter
from pricewatch.scrapers.types import FetchConfig, ScrapeInput, ScrapeResult, ShopId


logger = structlog.get_logger(__name__)


class AdapterFactory:
    """Registry of adapter classes keyed by ShopId.

    Provides dependency injection for the shared HTTP client and browser
    timeout, and caches one adapter instance per shop (adapters hold no
    per-request state).
    """

    def __init__(
        self,
        http_client: Optional[httpx.AsyncClient] = None,
        browser_timeout_ms: Optional[int] = None,
    ):
        """Initialize the adapter factory.

        Args:
            http_client: Shared httpx client for HTTP adapters (None = one client per request)
            browser_timeout_ms: Navigation timeout for browser adapters
        """
        self.http_client = http_client
        self.browser_timeout_ms = browser_timeout_ms

        # Registry of adapter classes
        self._adapter_registry: Dict[ShopId, Type[BaseAdapter]] = {}
        self._instances: Dict[ShopId, BaseAdapter] = {}

    def register_adapter(self, shop_id: ShopId, adapter_class: Type[BaseAdapter]) -> None:
        """Register an adapter class for a shop.

        Args:
            shop_id: Shop identifier
            adapter_class: Adapter class (must inherit from BaseAdapter)
        """
        if not issubclass(adapter_class, BaseAdapter):
            raise ValueError(f"Adapter class must inherit from BaseAdapter: {adapter_class}")

        shop_id = ShopId(shop_id)
        self._adapter_registry[shop_id] = adapter_class
        self._instances.pop(shop_id, None)
        logger.debug("adapter_registered", shop_id=int(shop_id), adapter_type=adapter_class.adapter_type)

    def create_adapter(self, shop_id: ShopId) -> BaseAdapter:
        """Create and configure a new adapter instance.

        Raises:
            AdapterNotRegisteredError: No adapter registered for the shop
        """
        adapter_class = self._adapter_registry.get(shop_id)
        if adapter_class is None:
            logger.warning("adapter_not_found", shop_id=int(shop_id))
            raise AdapterNotRegisteredError(int(shop_id))

        # Inject dependencies
        if issubclass(adapter_class, BaseHTTPAdapter):
            adapter = adapter_class(http_client=self.http_client)
        elif issubclass(adapter_class, BaseBrowserAdapter):
            adapter = adapter_class(browser_timeout_ms=self.browser_timeout_ms)
        else:
            adapter = adapter_class()

        return adapter

    def get_adapter(self, shop_id: ShopId) -> BaseAdapter:
        """Cached adapter instance for a shop (created on first use)."""
        adapter = self._instances.get(shop_id)
        if adapter is None:
            adapter = self.create_adapter(shop_id)
            self._instances[ShopId(shop_id)] = adapter
        return adapter

    def get_registered_shops(self) -> List[ShopId]:
        """Get list of registered shop ids."""
        return list(self._adapter_registry.keys())

    def has_adapter(self, shop_id: ShopId) -> bool:
        return shop_id in self._adapter_registry


# Global factory instance
adapter_factory = AdapterFactory()


def get_adapter_factory() -> AdapterFactory:
    """Get the global adapter factory instance.

    Returns:
        AdapterFactory instance
    """
    return adapter_factory


async def scrape_price(input: ScrapeInput, config: Optional[FetchConfig] = None) -> ScrapeResult:
    """Dispatch one input to the adapter registered for its shop.

    Raises:
        AdapterNotRegisteredError: register_all_adapters() was not called
    """
    adapter = get_adapter_factory().get_adapter(input.shop_id)
    return await adapter.scrape(input, config)
