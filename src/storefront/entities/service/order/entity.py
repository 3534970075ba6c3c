"""Entity: Order."""

from enum import StrEnum
from typing import Any

from pydantic import Field

from src.storefront.entities.core._base import Entity


class OrderStatus(StrEnum):
    PENDING = "pending"
    AWAITING_PAYMENT = "awaiting_payment"
    PAYMENT_VERIFIED = "payment_verified"
    PAYMENT_REJECTED = "payment_rejected"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class PaymentMethod(StrEnum):
    COD = "cod"
    BANK_TRANSFER = "bank_transfer"
    JAZZCASH = "jazzcash"
    EASYPAISA = "easypaisa"

    @property
    def is_wallet(self) -> bool:
        return self in (PaymentMethod.JAZZCASH, PaymentMethod.EASYPAISA)


# Statuses a customer may still cancel from
CANCELLABLE_STATUSES = frozenset(
    {OrderStatus.PENDING, OrderStatus.AWAITING_PAYMENT, OrderStatus.PAYMENT_REJECTED}
)

# Statuses in which the order no longer holds stock
RELEASED_STATUSES = frozenset({OrderStatus.CANCELLED, OrderStatus.REFUNDED})

# Statuses counted as collected revenue
PAID_STATUSES = frozenset(
    {
        OrderStatus.PAYMENT_VERIFIED,
        OrderStatus.PROCESSING,
        OrderStatus.SHIPPED,
        OrderStatus.DELIVERED,
    }
)


class Order(Entity):
    """A placed order with its money breakdown and payment state."""

    user_id: str = Field(description="Owning profile")
    subtotal: float = Field(default=0)
    tax: float = Field(default=0)
    shipping: float = Field(default=0, description="Shipping including any COD fee")
    total_amount: float = Field(description="subtotal + tax + shipping")
    status: str = Field(default=OrderStatus.PENDING.value)
    payment_method: str = Field(default=PaymentMethod.COD.value)
    payment_intent_id: str | None = None
    payment_proof_url: str | None = None
    transaction_id: str | None = None
    payment_verified: bool = False
    shipping_address: dict[str, Any] = Field(default_factory=dict)
    admin_notes: str | None = None
    rejection_reason: str | None = None
    verified_by: str | None = None
    idempotency_key: str | None = None

    @property
    def holds_stock(self) -> bool:
        return self.status not in RELEASED_STATUSES

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Order):
            return False
        return (
            self.id == other.id
            and self.user_id == other.user_id
            and self.total_amount == other.total_amount
            and self.status == other.status
        )

    def __hash__(self) -> int:
        return hash((self.id, self.user_id, self.total_amount, self.status))


class OrderItem(Entity):
    """One purchased product with the unit price and name at purchase time."""

    order_id: str
    product_id: str
    quantity: int = Field(ge=1)
    price: float
    product_name: str | None = None

    @property
    def line_total(self) -> float:
        return round(self.price * self.quantity, 2)
