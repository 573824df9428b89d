"""SQLAlchemy models for PriceWatch.

All models are imported here so ``Base.metadata`` knows every table.
"""

from pricewatch.models.base import Base
from pricewatch.models.product import Product
from pricewatch.models.shop_price import ProductShopPrice
from pricewatch.models.price_history import ProductPriceHistory
from pricewatch.models.todays_deal import TodaysDeal

__all__ = [
    "Base",
    "Product",
    "ProductShopPrice",
    "ProductPriceHistory",
    "TodaysDeal",
]
