"""Customer-facing order workflow: placement, history, cancellation, proofs."""

from dataclasses import dataclass
from typing import Any

from loguru import logger
from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from src.storefront.core.errors import Conflict, NotFound, ValidationFailed
from src.storefront.core.services.cart.cart_service import merge_lines
from src.storefront.core.services.checkout.pricing import calculate_totals
from src.storefront.core.services.storage_service import PAYMENT_PROOFS, StorageService
from src.storefront.core.validation import is_valid_transaction_id
from src.storefront.entities.core.profile import Profile
from src.storefront.entities.service.cart import CartItemRepository
from src.storefront.entities.service.order import (
    Order,
    OrderItem,
    OrderRepository,
    OrderStatus,
    PaymentMethod,
)
from src.storefront.entities.service.order.entity import CANCELLABLE_STATUSES
from src.storefront.entities.service.product import Product, ProductRepository

REQUIRED_ADDRESS_FIELDS = (
    "full_name",
    "phone",
    "street_address",
    "city",
    "postal_code",
    "country",
)


class ShippingAddress(BaseModel):
    full_name: str | None = None
    email: str | None = None
    phone: str | None = None
    street_address: str | None = None
    city: str | None = None
    postal_code: str | None = None
    country: str | None = None


class OrderLineRequest(BaseModel):
    product_id: str
    quantity: int = 1


class PlaceOrderRequest(BaseModel):
    shipping_address: ShippingAddress | None = None
    payment_method: str = PaymentMethod.COD.value
    transaction_id: str | None = None
    payment_proof_url: str | None = None
    order_reference: str | None = None
    cart_items: list[OrderLineRequest] | None = None


@dataclass
class PlacedOrder:
    order: Order
    items: list[OrderItem]
    created: bool


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


def validate_payment(
    payment_method: str | None, transaction_id: str | None, payment_proof_url: str | None
) -> PaymentMethod:
    """Check the method and the payment evidence it requires."""
    try:
        method = PaymentMethod(payment_method or PaymentMethod.COD.value)
    except ValueError:
        raise ValidationFailed("Invalid payment method") from None

    if method.is_wallet and not transaction_id:
        raise ValidationFailed("Transaction ID is required")
    if method == PaymentMethod.BANK_TRANSFER and not (transaction_id or payment_proof_url):
        raise ValidationFailed("Transaction ID or payment proof is required")
    if transaction_id and not is_valid_transaction_id(transaction_id):
        raise ValidationFailed("Invalid transaction ID")
    return method


def build_shipping_address(
    address: ShippingAddress | None, order_reference: str | None
) -> dict[str, Any]:
    if address is None:
        raise ValidationFailed("Invalid request data")
    cleaned = {key: _clean(value) for key, value in address.model_dump().items()}
    if any(not cleaned.get(field) for field in REQUIRED_ADDRESS_FIELDS):
        raise ValidationFailed("Missing required shipping address fields")
    reference = _clean(order_reference)
    if reference:
        cleaned["order_reference"] = reference
    return cleaned


class OrderService:
    def __init__(self, db_session: Session):
        self._session = db_session
        self._orders = OrderRepository(db_session)
        self._products = ProductRepository(db_session)
        self._cart = CartItemRepository(db_session)

    def _requested_lines(self, user_id: str, request: PlaceOrderRequest) -> dict[str, int]:
        if request.cart_items is not None:
            pairs = [(line.product_id, line.quantity) for line in request.cart_items]
        else:
            pairs = [
                (item.product_id, item.quantity)
                for item, _ in self._cart.list_with_products(user_id)
            ]
        if not pairs or any(quantity < 1 for _, quantity in pairs):
            raise ValidationFailed("Invalid request data")
        return merge_lines(pairs)

    def _priced_items(self, lines: dict[str, int]) -> list[tuple[Product, int]]:
        products = self._products.get_many(lines)
        priced = []
        for product_id, quantity in lines.items():
            product = products.get(product_id)
            if product is None:
                raise ValidationFailed(f"Product {product_id} not found")
            if product.stock < quantity:
                raise ValidationFailed(
                    f"Insufficient stock for {product.name}. Available: {product.stock}"
                )
            priced.append((product, quantity))
        return priced

    def place_order(
        self,
        profile: Profile,
        request: PlaceOrderRequest,
        idempotency_key: str | None = None,
    ) -> PlacedOrder:
        """Validate, price and persist an order in a single transaction.

        Stock is taken with guarded updates, so an order either gets every unit
        it asks for or nothing is written. A repeated ``idempotency_key`` from
        the same user returns the original order untouched.
        """
        idempotency_key = _clean(idempotency_key)
        if idempotency_key:
            existing = self._orders.get_by_idempotency_key(profile.id, idempotency_key)
            if existing is not None:
                logger.bind(order_id=existing.id).info("Idempotent order replay")
                return PlacedOrder(existing, self._orders.items(existing.id), created=False)

        shipping_address = build_shipping_address(
            request.shipping_address, request.order_reference
        )
        lines = self._requested_lines(profile.id, request)
        transaction_id = _clean(request.transaction_id)
        payment_proof_url = _clean(request.payment_proof_url)
        method = validate_payment(request.payment_method, transaction_id, payment_proof_url)
        priced = self._priced_items(lines)

        totals = calculate_totals(
            ((product.price, quantity) for product, quantity in priced), method.value
        )
        order = Order(
            user_id=profile.id,
            subtotal=totals.subtotal,
            tax=totals.tax,
            shipping=totals.shipping,
            total_amount=totals.total,
            status=(
                OrderStatus.PENDING.value
                if method == PaymentMethod.COD
                else OrderStatus.AWAITING_PAYMENT.value
            ),
            payment_method=method.value,
            transaction_id=transaction_id,
            payment_proof_url=payment_proof_url,
            shipping_address=shipping_address,
            idempotency_key=idempotency_key,
        )
        items = [
            OrderItem(
                order_id=order.id,
                product_id=product.id,
                quantity=quantity,
                price=product.price,
                product_name=product.name,
            )
            for product, quantity in priced
        ]

        try:
            created = self._orders.create(order, items)
            for product, quantity in priced:
                if not self._products.decrement_stock(product.id, quantity):
                    raise Conflict(f"Insufficient stock for {product.name}")
            self._cart.clear(profile.id)
            self._session.commit()
        except Conflict:
            self._session.rollback()
            logger.bind(user_id=profile.id).warning("Order lost a race for stock")
            raise
        except IntegrityError:
            self._session.rollback()
            if idempotency_key:
                existing = self._orders.get_by_idempotency_key(profile.id, idempotency_key)
                if existing is not None:
                    return PlacedOrder(existing, self._orders.items(existing.id), created=False)
            raise
        except Exception:
            self._session.rollback()
            raise

        logger.bind(
            order_id=created.id,
            user_id=profile.id,
            payment_method=created.payment_method,
            total_amount=created.total_amount,
            item_count=sum(lines.values()),
        ).info("Order placed")
        return PlacedOrder(created, items, created=True)

    def list_orders(self, user_id: str, limit: int = 10, offset: int = 0) -> list[Order]:
        return self._orders.list_for_user(user_id, limit=limit, offset=offset)

    def get_order(self, user_id: str, order_id: str) -> tuple[Order, list[OrderItem]]:
        order = self._orders.get_for_user(order_id, user_id)
        if order is None:
            raise NotFound("Order not found")
        return order, self._orders.items(order.id)

    def item_products(self, items: list[OrderItem]) -> dict[str, Product]:
        return self._products.get_many(item.product_id for item in items)

    def cancel_order(self, user_id: str, order_id: str) -> Order:
        order = self._orders.get_for_user(order_id, user_id)
        if order is None:
            raise NotFound("Order not found")
        if order.status not in CANCELLABLE_STATUSES:
            raise Conflict(f"Order cannot be cancelled once it is {order.status}")

        for item in self._orders.items(order.id):
            self._products.increment_stock(item.product_id, item.quantity)
        updated = self._orders.update(
            order.model_copy(update={"status": OrderStatus.CANCELLED.value})
        )
        self._session.commit()
        logger.bind(order_id=order.id, user_id=user_id).info("Order cancelled by customer")
        return updated

    def attach_payment_proof(
        self,
        user_id: str,
        order_id: str,
        storage: StorageService,
        content: bytes,
        content_type: str | None,
        filename: str | None = None,
    ) -> Order:
        order = self._orders.get_for_user(order_id, user_id)
        if order is None:
            raise NotFound("Order not found")
        if order.status not in (OrderStatus.AWAITING_PAYMENT, OrderStatus.PAYMENT_REJECTED):
            raise Conflict("Payment proof can only be uploaded while payment is pending")

        stored = storage.save(
            PAYMENT_PROOFS,
            content,
            content_type,
            filename=filename,
            folder=user_id,
            prefix=order.id,
        )
        previous_proof = order.payment_proof_url
        try:
            updated = self._orders.update(
                order.model_copy(
                    update={
                        "payment_proof_url": stored.url,
                        "status": OrderStatus.AWAITING_PAYMENT.value,
                    }
                )
            )
            self._session.commit()
        except Exception:
            self._session.rollback()
            storage.delete(stored.url)
            raise

        if previous_proof and previous_proof != stored.url:
            storage.delete(previous_proof)
        logger.bind(order_id=order.id, user_id=user_id).info("Payment proof uploaded")
        return updated
