"""Entities organised by business concept.

Each entity has its own package containing:
- entity.py: Domain model
- table.py: Database persistence model
- repository.py: Data access layer
"""

from .core.profile import Profile, ProfileRepository, ProfileTable
from .service.cart import CartItem, CartItemRepository, CartItemTable
from .service.contact import ContactMessage, ContactMessageRepository, ContactMessageTable
from .service.order import (
    Order,
    OrderItem,
    OrderItemTable,
    OrderRepository,
    OrderTable,
)
from .service.product import Product, ProductRepository, ProductTable

__all__ = [
    "CartItem",
    "CartItemRepository",
    "CartItemTable",
    "ContactMessage",
    "ContactMessageRepository",
    "ContactMessageTable",
    "Order",
    "OrderItem",
    "OrderItemTable",
    "OrderRepository",
    "OrderTable",
    "Product",
    "ProductRepository",
    "ProductTable",
    "Profile",
    "ProfileRepository",
    "ProfileTable",
]
