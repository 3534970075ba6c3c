"""Entity: Product."""

from typing import Any

from pydantic import Field

from src.storefront.entities.core._base import Entity


class Product(Entity):
    """A watch in the catalog."""

    name: str = Field(description="Name")
    brand: str = Field(description="Brand")
    price: float = Field(gt=0, description="Current unit price")
    description: str = Field(default="", description="Description")
    image_url: str | None = Field(default=None, description="Primary image")
    image_urls: list[str] = Field(default_factory=list, description="All images")
    stock: int = Field(default=0, ge=0, description="Units available")
    category: str = Field(description="Catalog category")

    @property
    def in_stock(self) -> bool:
        return self.stock > 0

    def __eq__(self, other: Any) -> bool:
        """Compare products by business attributes, ignoring timestamps."""
        if not isinstance(other, Product):
            return False

        return (
            self.id == other.id
            and self.name == other.name
            and self.brand == other.brand
            and self.price == other.price
            and self.stock == other.stock
            and self.category == other.category
        )

    def __hash__(self) -> int:
        """Hash based on business attributes, ignoring timestamps."""
        return hash((
            self.id,
            self.name,
            self.brand,
            self.price,
            self.stock,
            self.category,
        ))
