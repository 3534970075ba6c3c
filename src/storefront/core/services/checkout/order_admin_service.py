"""Back-office order management."""

import math
from typing import Any

from loguru import logger
from sqlmodel import Session

from src.storefront.core.errors import Conflict, NotFound, ValidationFailed
from src.storefront.entities.core.profile import Profile, ProfileRepository
from src.storefront.entities.service.order import (
    Order,
    OrderItem,
    OrderRepository,
    OrderStatus,
)
from src.storefront.entities.service.order.entity import RELEASED_STATUSES
from src.storefront.entities.service.product import ProductRepository


def order_with_customer(order: Order, customer: Profile | None) -> dict[str, Any]:
    """Serialize an order with the customer columns the back-office shows."""
    data = order.model_dump(mode="json")
    data["customer_name"] = customer.full_name if customer else None
    data["customer_email"] = customer.email if customer else None
    data["customer_phone"] = customer.phone if customer else None
    return data


class OrderAdminService:
    def __init__(self, db_session: Session):
        self._session = db_session
        self._orders = OrderRepository(db_session)
        self._products = ProductRepository(db_session)
        self._profiles = ProfileRepository(db_session)

    def list_orders(
        self,
        *,
        status: str | None = None,
        payment_method: str | None = None,
        search: str | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> dict[str, Any]:
        rows, total = self._orders.search_with_customer(
            status=status,
            payment_method=payment_method,
            search=search,
            offset=(page - 1) * limit,
            limit=limit,
        )
        return {
            "orders": [order_with_customer(order, customer) for order, customer in rows],
            "total": total,
            "page": page,
            "limit": limit,
            "total_pages": math.ceil(total / limit) if total else 0,
        }

    def get_order(self, order_id: str) -> tuple[Order, list[OrderItem], Profile | None]:
        order = self._orders.get(order_id)
        if order is None:
            raise NotFound("Order not found")
        return order, self._orders.items(order.id), self._profiles.get(order.user_id)

    def customer_email(self, order: Order) -> str | None:
        customer = self._profiles.get(order.user_id)
        return customer.email if customer else None

    def update_status(
        self, order_id: str, status: str | None, admin_id: str
    ) -> tuple[Order, str]:
        """Move an order to ``status``, keeping stock in step.

        Leaving a stock-holding status for cancelled/refunded puts the units
        back; re-opening a released order takes them again. Returns the
        updated order and the status it had before.
        """
        if not status:
            raise ValidationFailed("Status is required")
        try:
            new_status = OrderStatus(status)
        except ValueError:
            raise ValidationFailed("Invalid status") from None

        order = self._orders.get(order_id)
        if order is None:
            raise NotFound("Order not found")
        if order.status == new_status:
            return order, order.status

        was_released = not order.holds_stock
        now_released = new_status in RELEASED_STATUSES
        try:
            if now_released and not was_released:
                for item in self._orders.items(order.id):
                    self._products.increment_stock(item.product_id, item.quantity)
            elif was_released and not now_released:
                for item in self._orders.items(order.id):
                    if not self._products.decrement_stock(item.product_id, item.quantity):
                        raise Conflict(
                            f"Insufficient stock to reopen order for {item.product_name}"
                        )
            updated = self._orders.update(order.model_copy(update={"status": new_status.value}))
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise

        logger.bind(
            order_id=order.id,
            admin_id=admin_id,
            old_status=order.status,
            new_status=new_status.value,
        ).info("Order status updated")
        return updated, order.status
