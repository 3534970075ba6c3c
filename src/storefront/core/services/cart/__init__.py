from .cart_service import CartLine, CartService, CartView

__all__ = ["CartLine", "CartService", "CartView"]
