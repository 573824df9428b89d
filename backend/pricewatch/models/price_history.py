"""Price history tracking for per-shop product prices."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Index, Integer, Numeric
from sqlalchemy.orm import Mapped, mapped_column

from pricewatch.models.base import Base


class ProductPriceHistory(Base):
    """Append-only record of accepted price changes.

    One row is written each time a product's current price at a shop
    actually changes. Rows are never updated or deleted by the scraper.
    """

    __tablename__ = "products_prices_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    product_id: Mapped[int] = mapped_column("productId", Integer, nullable=False)
    shop_id: Mapped[int] = mapped_column("shopId", Integer, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric, nullable=False, comment="Price at this point in time")
    created_at: Mapped[datetime] = mapped_column("createdAt", DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("idx_products_prices_history_product_shop", "productId", "shopId"),
    )

    def __repr__(self) -> str:
        return (
            f"<ProductPriceHistory(id={self.id}, product_id={self.product_id}, "
            f"shop_id={self.shop_id}, price={self.price}, created_at={self.created_at})>"
        )
