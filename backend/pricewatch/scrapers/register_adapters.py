"""Register all shop adapters with the factory.

This module should be imported during application startup to register
all available adapters with the adapter factory.
"""

from typing import Optional

import structlog

from pricewatch.scrapers.factory import AdapterFactory, get_adapter_factory
from pricewatch.scrapers.types import ShopId
from pricewatch.scrapers.adapters import (
    # HTTP adapters
    SirenaAdapter,
    NacionalAdapter,
    PlazaLamaAdapter,
    PricesmartAdapter,
    BravoAdapter,
    # Browser adapters
    JumboAdapter,
)

logger = structlog.get_logger(__name__)


ADAPTERS = [
    (ShopId.SIRENA, SirenaAdapter),
    (ShopId.NACIONAL, NacionalAdapter),
    (ShopId.JUMBO, JumboAdapter),
    (ShopId.PLAZA_LAMA, PlazaLamaAdapter),
    (ShopId.PRICESMART, PricesmartAdapter),
    (ShopId.BRAVO, BravoAdapter),
]


def register_all_adapters(factory: Optional[AdapterFactory] = None) -> AdapterFactory:
    """Register all available adapters with the factory.

    This should be called during application startup. Calling it again is
    harmless: already-registered shops are skipped.
    """
    factory = factory or get_adapter_factory()

    for shop_id, adapter_class in ADAPTERS:
        if factory.has_adapter(shop_id):
            continue
        factory.register_adapter(shop_id, adapter_class)

    logger.info(
        "all_adapters_registered",
        count=len(factory.get_registered_shops()),
        shops=[int(shop_id) for shop_id in factory.get_registered_shops()],
    )
    return factory
