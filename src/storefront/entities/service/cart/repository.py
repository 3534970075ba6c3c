from sqlalchemy import delete
from sqlmodel import Session, col, select

from src.storefront.entities.core._base import utcnow
from src.storefront.entities.service.cart.entity import CartItem
from src.storefront.entities.service.cart.table import CartItemTable
from src.storefront.entities.service.product import Product, ProductTable


class CartItemRepository:
    """Data-access layer for cart lines."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def _row(self, user_id: str, product_id: str) -> CartItemTable | None:
        statement = select(CartItemTable).where(
            (CartItemTable.user_id == user_id) & (CartItemTable.product_id == product_id)
        )
        return self._session.exec(statement).first()

    def get(self, user_id: str, product_id: str) -> CartItem | None:
        row = self._row(user_id, product_id)
        if row is None:
            return None
        return CartItem.model_validate(row, from_attributes=True)

    def list_with_products(self, user_id: str) -> list[tuple[CartItem, Product]]:
        statement = (
            select(CartItemTable, ProductTable)
            .join(ProductTable, ProductTable.id == CartItemTable.product_id)
            .where(CartItemTable.user_id == user_id)
            .order_by(col(CartItemTable.created_at))
        )
        return [
            (
                CartItem.model_validate(item_row, from_attributes=True),
                Product.model_validate(product_row, from_attributes=True),
            )
            for item_row, product_row in self._session.exec(statement)
        ]

    def set_quantity(self, user_id: str, product_id: str, quantity: int) -> CartItem:
        """Insert the line or overwrite its quantity."""
        row = self._row(user_id, product_id)
        if row is None:
            row = CartItemTable(user_id=user_id, product_id=product_id, quantity=quantity)
        else:
            row.quantity = quantity
            row.updated_at = utcnow()
        self._session.add(row)
        self._session.flush()
        self._session.refresh(row)
        return CartItem.model_validate(row, from_attributes=True)

    def remove(self, user_id: str, product_id: str) -> bool:
        row = self._row(user_id, product_id)
        if row is None:
            return False
        self._session.delete(row)
        self._session.flush()
        return True

    def clear(self, user_id: str) -> int:
        result = self._session.execute(
            delete(CartItemTable).where(col(CartItemTable.user_id) == user_id)
        )
        return result.rowcount

    def remove_product_everywhere(self, product_id: str) -> int:
        result = self._session.execute(
            delete(CartItemTable).where(col(CartItemTable.product_id) == product_id)
        )
        return result.rowcount
