"""Order database table models."""

from typing import Any

import sqlalchemy as sa
from sqlmodel import Field

from src.storefront.entities.core._base import EntityTable


class OrderTable(EntityTable, table=True):
    """Database persistence model for orders."""

    __tablename__ = "orders"
    __table_args__ = (
        sa.UniqueConstraint("user_id", "idempotency_key", name="uq_orders_user_idempotency"),
    )

    user_id: str = Field(foreign_key="profiles.id", index=True)
    subtotal: float = 0
    tax: float = 0
    shipping: float = 0
    total_amount: float
    status: str = Field(default="pending", index=True)
    payment_method: str = Field(default="cod", index=True)
    payment_intent_id: str | None = None
    payment_proof_url: str | None = None
    transaction_id: str | None = Field(default=None, index=True)
    payment_verified: bool = False
    shipping_address: dict[str, Any] = Field(
        default_factory=dict, sa_column=sa.Column(sa.JSON, nullable=False)
    )
    admin_notes: str | None = None
    rejection_reason: str | None = None
    verified_by: str | None = None
    idempotency_key: str | None = None


class OrderItemTable(EntityTable, table=True):
    """Database persistence model for order lines."""

    __tablename__ = "order_items"

    order_id: str = Field(
        sa_column=sa.Column(
            sa.String, sa.ForeignKey("orders.id", ondelete="CASCADE"), index=True, nullable=False
        )
    )
    product_id: str = Field(index=True)
    quantity: int
    price: float
    product_name: str | None = None
