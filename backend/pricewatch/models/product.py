"""Product catalogue row, read to skip deleted products."""

from typing import Optional

from sqlalchemy import Boolean, Integer
from sqlalchemy.orm import Mapped, mapped_column

from pricewatch.models.base import Base


class Product(Base):
    """A catalogue product. Only the columns the scraper needs are mapped."""

    __tablename__ = "products"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    deleted: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, deleted={self.deleted})>"
