"""Entity: CartItem."""

from pydantic import Field

from src.storefront.entities.core._base import Entity


class CartItem(Entity):
    """One product line in a customer's server-side cart."""

    user_id: str
    product_id: str
    quantity: int = Field(default=1, ge=1)
