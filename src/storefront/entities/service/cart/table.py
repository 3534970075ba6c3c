"""CartItem database table model."""

import sqlalchemy as sa
from sqlmodel import Field

from src.storefront.entities.core._base import EntityTable


class CartItemTable(EntityTable, table=True):
    """Database persistence model for cart lines; one line per product."""

    __tablename__ = "cart_items"
    __table_args__ = (
        sa.UniqueConstraint("user_id", "product_id", name="uq_cart_items_user_product"),
    )

    user_id: str = Field(foreign_key="profiles.id", index=True)
    product_id: str = Field(
        sa_column=sa.Column(
            sa.String, sa.ForeignKey("products.id", ondelete="CASCADE"), nullable=False
        )
    )
    quantity: int = 1
