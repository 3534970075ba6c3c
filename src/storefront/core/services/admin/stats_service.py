"""Dashboard figures for the back-office."""

from typing import Any

from sqlmodel import Session

from src.storefront.core.services.checkout.order_admin_service import order_with_customer
from src.storefront.entities.service.order import OrderRepository
from src.storefront.entities.service.order.entity import PAID_STATUSES
from src.storefront.entities.service.product import ProductRepository
from src.storefront.runtime.context import get_config


class StatsService:
    def __init__(self, db_session: Session):
        self._orders = OrderRepository(db_session)
        self._products = ProductRepository(db_session)

    def dashboard(self) -> dict[str, Any]:
        threshold = get_config().store.low_stock_threshold
        recent, _ = self._orders.search_with_customer(limit=5)
        paid = self._orders.totals_by_payment_method(s.value for s in PAID_STATUSES)
        placed = self._orders.totals_by_payment_method()

        return {
            "total_products": self._products.count(),
            "total_orders": self._orders.count(),
            "total_revenue": self._orders.revenue(),
            "pending_payments": self._orders.count(status="awaiting_payment"),
            "low_stock_products": [
                product.model_dump(mode="json")
                for product in self._products.low_stock(threshold, limit=10)
            ],
            "recent_orders": [
                order_with_customer(order, customer) for order, customer in recent
            ],
            "revenue_by_payment_method": {
                method: amount for method, (_, amount) in sorted(paid.items())
            },
            "orders_by_payment_method": {
                method: count for method, (count, _) in sorted(placed.items())
            },
        }
