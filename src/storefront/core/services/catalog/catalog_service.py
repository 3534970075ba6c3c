"""Public catalog browsing: filtering, sorting, paging and facets."""

import math
from typing import Literal

from pydantic import BaseModel, Field
from sqlmodel import Session

from src.storefront.core.errors import NotFound
from src.storefront.entities.service.product import Product, ProductRepository

SortOption = Literal["newest", "price-asc", "price-desc", "name-asc"]

# sort option -> (column, descending)
SORTS: dict[str, tuple[str, bool]] = {
    "newest": ("created_at", True),
    "price-asc": ("price", False),
    "price-desc": ("price", True),
    "name-asc": ("name", False),
}


class ProductQuery(BaseModel):
    search: str | None = None
    category: str | None = None
    brands: list[str] = Field(default_factory=list)
    min_price: float | None = Field(default=None, ge=0)
    max_price: float | None = Field(default=None, ge=0)
    in_stock: bool = False
    sort: SortOption = "newest"
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=12, ge=1, le=100)


class ProductPage(BaseModel):
    products: list[Product]
    total: int
    page: int
    limit: int
    total_pages: int


class Facets(BaseModel):
    brands: list[str]
    categories: list[str]
    min_price: float
    max_price: float


class CatalogService:
    def __init__(self, db_session: Session):
        self._products = ProductRepository(db_session)

    def list_products(self, query: ProductQuery) -> ProductPage:
        sort_by, descending = SORTS[query.sort]
        products, total = self._products.search(
            search=query.search,
            category=query.category,
            brands=[b for b in query.brands if b],
            min_price=query.min_price,
            max_price=query.max_price,
            in_stock=query.in_stock,
            sort_by=sort_by,
            descending=descending,
            offset=(query.page - 1) * query.limit,
            limit=query.limit,
        )
        return ProductPage(
            products=products,
            total=total,
            page=query.page,
            limit=query.limit,
            total_pages=math.ceil(total / query.limit) if total else 0,
        )

    def facets(self) -> Facets:
        low, high = self._products.price_range()
        return Facets(
            brands=self._products.brands(),
            categories=self._products.categories(),
            min_price=low,
            max_price=high,
        )

    def get_product(self, product_id: str) -> Product:
        product = self._products.get(product_id)
        if product is None:
            raise NotFound("Product not found")
        return product

    def related(self, product: Product, limit: int = 4) -> list[Product]:
        return self._products.related(product, limit=limit)
