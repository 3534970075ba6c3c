"""Manual payment review for bank transfers and mobile wallets."""

from typing import Any

from loguru import logger
from sqlmodel import Session

from src.storefront.core.errors import Conflict, NotFound, ValidationFailed
from src.storefront.core.services.checkout.order_admin_service import order_with_customer
from src.storefront.entities.service.order import Order, OrderRepository, OrderStatus
from src.storefront.entities.service.order.entity import RELEASED_STATUSES


class PaymentReviewService:
    def __init__(self, db_session: Session):
        self._session = db_session
        self._orders = OrderRepository(db_session)

    def pending_payments(self) -> list[dict[str, Any]]:
        rows, _ = self._orders.search_with_customer(status=OrderStatus.AWAITING_PAYMENT.value)
        return [order_with_customer(order, customer) for order, customer in rows]

    def review(
        self,
        order_id: str | None,
        verified: bool | None,
        admin_id: str,
        admin_notes: str | None = None,
        rejection_reason: str | None = None,
    ) -> Order:
        """Record an admin's verdict on an order's payment."""
        if not order_id or verified is None:
            raise ValidationFailed("Order ID and verification status are required")

        order = self._orders.get(order_id)
        if order is None:
            raise NotFound("Order not found")
        if order.status in RELEASED_STATUSES:
            raise Conflict(f"Cannot review payment for a {order.status} order")

        notes = (admin_notes or "").strip() or order.admin_notes
        if verified:
            changes = {
                "payment_verified": True,
                "status": OrderStatus.PROCESSING.value,
                "admin_notes": notes,
                "rejection_reason": None,
                "verified_by": admin_id,
            }
        else:
            reason = (rejection_reason or "").strip()
            if not reason:
                raise ValidationFailed("Rejection reason is required")
            changes = {
                "payment_verified": False,
                "status": OrderStatus.PAYMENT_REJECTED.value,
                "admin_notes": notes,
                "rejection_reason": reason,
                "verified_by": admin_id,
            }

        updated = self._orders.update(order.model_copy(update=changes))
        self._session.commit()
        logger.bind(order_id=order.id, admin_id=admin_id, verified=verified).info(
            "Payment verified" if verified else "Payment rejected"
        )
        return updated

    def payment_proof_url(self, order_id: str) -> str:
        order = self._orders.get(order_id)
        if order is None:
            raise NotFound("Order not found")
        if not order.payment_proof_url:
            raise NotFound("No payment proof uploaded for this order")
        return order.payment_proof_url
