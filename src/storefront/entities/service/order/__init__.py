"""Entity package: Order and its line items."""

from .entity import Order, OrderItem, OrderStatus, PaymentMethod
from .repository import OrderRepository
from .table import OrderItemTable, OrderTable

__all__ = [
    "Order",
    "OrderItem",
    "OrderItemTable",
    "OrderRepository",
    "OrderStatus",
    "OrderTable",
    "PaymentMethod",
]
