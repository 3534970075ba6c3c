"""Server-side cart state: one line per product, priced on read."""

from collections.abc import Iterable

from loguru import logger
from pydantic import BaseModel
from sqlmodel import Session

from src.storefront.core.errors import NotFound, ValidationFailed
from src.storefront.core.services.checkout.pricing import (
    amount_to_free_shipping,
    calculate_totals,
)
from src.storefront.entities.service.cart import CartItemRepository
from src.storefront.entities.service.product import Product, ProductRepository


class CartLine(BaseModel):
    id: str
    product: Product
    quantity: int
    line_total: float


class CartView(BaseModel):
    items: list[CartLine]
    total_items: int
    subtotal: float
    tax: float
    shipping: float
    total: float
    amount_to_free_shipping: float
    skipped: list[str] = []


def merge_lines(lines: Iterable[tuple[str, int]]) -> dict[str, int]:
    """Collapse ``(product_id, quantity)`` pairs into one quantity per product."""
    merged: dict[str, int] = {}
    for product_id, quantity in lines:
        merged[product_id] = merged.get(product_id, 0) + quantity
    return merged


class CartService:
    def __init__(self, db_session: Session):
        self._session = db_session
        self._items = CartItemRepository(db_session)
        self._products = ProductRepository(db_session)

    def view(self, user_id: str) -> CartView:
        lines = [
            CartLine(
                id=item.id,
                product=product,
                quantity=item.quantity,
                line_total=round(product.price * item.quantity, 2),
            )
            for item, product in self._items.list_with_products(user_id)
        ]
        # Preview totals carry no payment-method surcharge
        totals = calculate_totals((line.product.price, line.quantity) for line in lines)
        return CartView(
            items=lines,
            total_items=sum(line.quantity for line in lines),
            subtotal=totals.subtotal,
            tax=totals.tax,
            shipping=totals.shipping if lines else 0.0,
            total=totals.total if lines else 0.0,
            amount_to_free_shipping=amount_to_free_shipping(totals.subtotal),
        )

    def _require_product(self, product_id: str) -> Product:
        product = self._products.get(product_id)
        if product is None:
            raise NotFound("Product not found")
        return product

    def add_item(self, user_id: str, product_id: str, quantity: int = 1) -> CartView:
        if quantity < 1:
            raise ValidationFailed("Quantity must be at least 1")
        self._require_product(product_id)
        existing = self._items.get(user_id, product_id)
        new_quantity = quantity + (existing.quantity if existing else 0)
        self._items.set_quantity(user_id, product_id, new_quantity)
        self._session.commit()
        logger.bind(user_id=user_id, product_id=product_id, quantity=new_quantity).debug(
            "Cart line added"
        )
        return self.view(user_id)

    def update_quantity(self, user_id: str, product_id: str, quantity: int) -> CartView:
        if quantity <= 0:
            self._items.remove(user_id, product_id)
        else:
            self._require_product(product_id)
            self._items.set_quantity(user_id, product_id, quantity)
        self._session.commit()
        return self.view(user_id)

    def remove_item(self, user_id: str, product_id: str) -> CartView:
        self._items.remove(user_id, product_id)
        self._session.commit()
        return self.view(user_id)

    def clear(self, user_id: str) -> CartView:
        self._items.clear(user_id)
        self._session.commit()
        return self.view(user_id)

    def replace(self, user_id: str, lines: Iterable[tuple[str, int]]) -> CartView:
        """Replace the whole cart, e.g. with a cart kept client-side before login."""
        merged = {pid: qty for pid, qty in merge_lines(lines).items() if qty > 0}
        known = self._products.get_many(merged)
        skipped = sorted(pid for pid in merged if pid not in known)

        self._items.clear(user_id)
        for product_id, quantity in merged.items():
            if product_id in known:
                self._items.set_quantity(user_id, product_id, quantity)
        self._session.commit()

        if skipped:
            logger.bind(user_id=user_id, skipped=skipped).info(
                "Cart sync skipped unknown products"
            )
        view = self.view(user_id)
        view.skipped = skipped
        return view
