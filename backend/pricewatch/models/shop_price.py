"""Per-shop price record for a product."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import Boolean, DateTime, Integer, Numeric, Text
from sqlalchemy.orm import Mapped, mapped_column

from pricewatch.models.base import Base


class ProductShopPrice(Base):
    """Current price of one product at one shop.

    Uniquely identified by the (product_id, shop_id) pair. ``hidden`` and
    ``current_price`` are independent: a hidden record keeps its last known
    price so it can be shown again once the listing is reachable.
    """

    __tablename__ = "products_shops_prices"

    product_id: Mapped[int] = mapped_column("productId", Integer, primary_key=True)
    shop_id: Mapped[int] = mapped_column("shopId", Integer, primary_key=True)

    url: Mapped[str] = mapped_column(Text, nullable=False)
    api: Mapped[Optional[str]] = mapped_column(Text, nullable=True, comment="Vendor API locator (SKU or endpoint)")

    current_price: Mapped[Optional[Decimal]] = mapped_column("currentPrice", Numeric, nullable=True)
    regular_price: Mapped[Optional[Decimal]] = mapped_column("regularPrice", Numeric, nullable=True)

    updated_at: Mapped[Optional[datetime]] = mapped_column(
        "updateAt",
        DateTime(timezone=True),
        nullable=True,
        comment="Last successful or unchanged reconciliation",
    )
    hidden: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)

    def __repr__(self) -> str:
        return (
            f"<ProductShopPrice(product_id={self.product_id}, shop_id={self.shop_id}, "
            f"current_price={self.current_price}, hidden={self.hidden})>"
        )
