"""Entity package: CartItem."""

from .entity import CartItem
from .repository import CartItemRepository
from .table import CartItemTable

__all__ = ["CartItem", "CartItemRepository", "CartItemTable"]
