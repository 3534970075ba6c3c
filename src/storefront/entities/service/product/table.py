"""Product database table model."""

import sqlalchemy as sa
from sqlmodel import Field

from src.storefront.entities.core._base import EntityTable


class ProductTable(EntityTable, table=True):
    """Database persistence model for products."""

    __tablename__ = "products"

    name: str = Field(index=True)
    brand: str = Field(index=True)
    price: float
    description: str = ""
    image_url: str | None = None
    image_urls: list[str] = Field(
        default_factory=list, sa_column=sa.Column(sa.JSON, nullable=False)
    )
    stock: int = 0
    category: str = Field(index=True)
