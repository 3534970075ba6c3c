"""Back-office catalog management."""

from typing import Any, Literal

from loguru import logger
from pydantic import BaseModel, Field
from sqlmodel import Session

from src.storefront.core.errors import NotFound, ValidationFailed
from src.storefront.core.services.storage_service import StorageService
from src.storefront.core.validation import is_valid_price, is_valid_stock
from src.storefront.entities.service.cart import CartItemRepository
from src.storefront.entities.service.product import Product, ProductRepository
from src.storefront.runtime.context import get_config

REQUIRED_FIELDS = ("name", "brand", "description", "category")


class ProductInput(BaseModel):
    """Create or partial-update payload; unset fields are left alone on update."""

    name: str | None = None
    brand: str | None = None
    description: str | None = None
    category: str | None = None
    price: float | None = None
    stock: int | None = None
    image_urls: list[str] | None = None
    image_url: str | None = None

    def images(self) -> list[str] | None:
        """The supplied image list, falling back to the single ``image_url``."""
        urls = [url.strip() for url in self.image_urls or [] if url and url.strip()]
        if urls:
            return urls
        if self.image_url and self.image_url.strip():
            return [self.image_url.strip()]
        return None


class AdminProductQuery(BaseModel):
    category: str | None = None
    search: str | None = None
    sort_by: Literal["price", "stock", "created_at", "name"] = "created_at"
    sort_order: Literal["asc", "desc"] = "desc"
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1, le=100)


def _check_price(price: float | None) -> None:
    if not is_valid_price(price):
        raise ValidationFailed("Price must be a positive number")


def _check_stock(stock: int | None) -> None:
    if not is_valid_stock(stock):
        raise ValidationFailed("Stock must be a non-negative number")


def _check_category(category: str | None) -> None:
    if category not in get_config().store.categories:
        raise ValidationFailed("Invalid category")


class ProductAdminService:
    def __init__(self, db_session: Session, storage: StorageService):
        self._session = db_session
        self._storage = storage
        self._products = ProductRepository(db_session)
        self._cart = CartItemRepository(db_session)

    def list_products(self, query: AdminProductQuery) -> dict[str, Any]:
        products, total = self._products.search(
            search=query.search,
            fields=("name", "brand"),
            category=query.category,
            sort_by=query.sort_by,
            descending=query.sort_order == "desc",
            offset=(query.page - 1) * query.limit,
            limit=query.limit,
        )
        return {
            "products": products,
            "total": total,
            "page": query.page,
            "limit": query.limit,
        }

    def get_product(self, product_id: str) -> Product:
        product = self._products.get(product_id)
        if product is None:
            raise NotFound("Product not found")
        return product

    def create_product(self, data: ProductInput) -> Product:
        values = {field: (getattr(data, field) or "").strip() for field in REQUIRED_FIELDS}
        if any(not value for value in values.values()) or data.price is None:
            raise ValidationFailed("Missing required fields")
        _check_price(data.price)
        _check_stock(data.stock)
        _check_category(values["category"])

        images = data.images()
        if not images:
            raise ValidationFailed("At least one product image is required")

        product = Product(
            **values,
            price=round(data.price, 2),
            stock=data.stock,
            image_url=images[0],
            image_urls=images,
        )
        try:
            created = self._products.create(product)
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise

        logger.bind(product_id=created.id, category=created.category).info("Product created")
        return created

    def update_product(self, product_id: str, data: ProductInput) -> Product:
        """Apply the fields that were sent; images dropped from a new list are deleted."""
        existing = self.get_product(product_id)
        sent = data.model_fields_set
        changes: dict[str, Any] = {}

        for field in ("name", "brand", "description"):
            if field in sent and getattr(data, field) is not None:
                value = getattr(data, field).strip()
                if not value and field != "description":
                    raise ValidationFailed(f"{field.capitalize()} cannot be empty")
                changes[field] = value
        if "price" in sent:
            _check_price(data.price)
            changes["price"] = round(data.price, 2)
        if "stock" in sent:
            _check_stock(data.stock)
            changes["stock"] = data.stock
        if "category" in sent and data.category:
            _check_category(data.category)
            changes["category"] = data.category

        removed_images: list[str] = []
        images = data.images()
        if images:
            old_images = existing.image_urls or ([existing.image_url] if existing.image_url else [])
            removed_images = [url for url in old_images if url not in images]
            changes["image_url"] = images[0]
            changes["image_urls"] = images

        try:
            updated = self._products.update(existing.model_copy(update=changes))
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise

        if removed_images:
            self._storage.delete_many(removed_images)
        logger.bind(product_id=product_id, fields=sorted(changes)).info("Product updated")
        return updated

    def delete_product(self, product_id: str) -> None:
        """Delete the product, drop it from carts, then remove its images."""
        product = self.get_product(product_id)
        try:
            self._cart.remove_product_everywhere(product.id)
            self._products.delete(product.id)
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise

        images = list(product.image_urls)
        if product.image_url and product.image_url not in images:
            images.append(product.image_url)
        deleted = self._storage.delete_many(images)
        logger.bind(product_id=product.id, images_deleted=deleted).info("Product deleted")
