"""Materialized set of products currently featured as today's deals."""

from sqlalchemy import Integer
from sqlalchemy.orm import Mapped, mapped_column

from pricewatch.models.base import Base


class TodaysDeal(Base):
    """Product featured in today's deals. Rebuilt by ``refresh_todays_deals()``."""

    __tablename__ = "todays_deals"

    product_id: Mapped[int] = mapped_column("productId", Integer, primary_key=True, autoincrement=False)
