import pytest
from sqlmodel import Session

from src.storefront.core.errors import Conflict, NotFound, ValidationFailed
from src.storefront.core.services.cart import CartService
from src.storefront.core.services.checkout.order_service import (
    OrderLineRequest,
    OrderService,
    PlaceOrderRequest,
    ShippingAddress,
    validate_payment,
)
from src.storefront.core.services.storage_service import PAYMENT_PROOFS, StorageService
from src.storefront.entities.service.order import OrderStatus
from src.storefront.entities.service.product import ProductRepository

ADDRESS = ShippingAddress(
    full_name="Ayesha Khan",
    email="ayesha.orders@example.com",
    phone="03001234567",
    street_address="12 Mall Road",
    city="Lahore",
    postal_code="54000",
    country="Pakistan",
)


def _request(product_id: str, quantity: int = 1, **overrides) -> PlaceOrderRequest:
    data = {
        "shipping_address": ADDRESS,
        "payment_method": "cod",
        "cart_items": [OrderLineRequest(product_id=product_id, quantity=quantity)],
    }
    data.update(overrides)
    return PlaceOrderRequest(**data)


class TestValidatePayment:
    def test_cod_needs_nothing(self):
        assert validate_payment("cod", None, None) == "cod"

    def test_wallets_need_transaction_id(self):
        with pytest.raises(ValidationFailed, match="Transaction ID is required"):
            validate_payment("jazzcash", None, None)
        assert validate_payment("easypaisa", "TXN12345", None) == "easypaisa"

    def test_bank_transfer_accepts_proof_or_transaction(self):
        with pytest.raises(ValidationFailed, match="Transaction ID or payment proof is required"):
            validate_payment("bank_transfer", None, None)
        assert validate_payment("bank_transfer", None, "http://testserver/proof.png")
        assert validate_payment("bank_transfer", "TXN12345", None)

    def test_rejects_bad_input(self):
        with pytest.raises(ValidationFailed, match="Invalid payment method"):
            validate_payment("bitcoin", None, None)
        with pytest.raises(ValidationFailed, match="Invalid transaction ID"):
            validate_payment("jazzcash", "TX-1", None)


class TestPlaceOrder:
    """Checkout: validation, pricing, stock and idempotency."""

    @pytest.fixture
    def service(self, session: Session) -> OrderService:
        return OrderService(session)

    def test_cod_order(self, service, session, customer, make_product):
        """Should price the order, take stock and start it as pending."""
        product = make_product(price=1000, stock=5)
        placed = service.place_order(customer, _request(product.id, 2))

        order = placed.order
        assert placed.created is True
        assert order.status == OrderStatus.PENDING
        assert order.subtotal == 2000
        assert order.tax == 200
        assert order.shipping == 400
        assert order.total_amount == 2600
        assert order.shipping_address["city"] == "Lahore"
        assert [(i.product_name, i.quantity, i.price) for i in placed.items] == [
            (product.name, 2, 1000)
        ]
        assert ProductRepository(session).get(product.id).stock == 3

    def test_prepaid_order_awaits_payment(self, service, customer, make_product):
        product = make_product(price=6000)
        placed = service.place_order(
            customer,
            _request(product.id, payment_method="jazzcash", transaction_id=" TXN12345 "),
        )
        assert placed.order.status == OrderStatus.AWAITING_PAYMENT
        assert placed.order.transaction_id == "TXN12345"
        assert placed.order.shipping == 0
        assert placed.order.total_amount == 6600

    def test_order_reference_is_kept(self, service, customer, make_product):
        product = make_product()
        placed = service.place_order(customer, _request(product.id, order_reference="REF-42"))
        assert placed.order.shipping_address["order_reference"] == "REF-42"

    def test_duplicate_lines_are_merged(self, service, session, customer, make_product):
        product = make_product(stock=5)
        request = _request(product.id)
        request.cart_items.append(OrderLineRequest(product_id=product.id, quantity=2))
        placed = service.place_order(customer, request)
        assert [i.quantity for i in placed.items] == [3]
        assert ProductRepository(session).get(product.id).stock == 2

    def test_uses_server_cart_and_clears_it(self, service, session, customer, make_product):
        product = make_product(stock=5)
        cart = CartService(session)
        cart.add_item(customer.id, product.id, 2)

        placed = service.place_order(customer, _request(product.id, cart_items=None))
        assert [i.quantity for i in placed.items] == [2]
        assert cart.view(customer.id).items == []

    def test_insufficient_stock(self, service, session, customer, make_product):
        """Should refuse the order and leave stock untouched."""
        product = make_product(name="Seiko 5", stock=1)
        with pytest.raises(ValidationFailed, match="Insufficient stock for Seiko 5. Available: 1"):
            service.place_order(customer, _request(product.id, 2))
        assert ProductRepository(session).get(product.id).stock == 1
        assert service.list_orders(customer.id) == []

    def test_lost_stock_race_rolls_back(self, service, session, customer, make_product, monkeypatch):
        """Should write nothing when the guarded decrement fails."""
        product = make_product(stock=5)
        monkeypatch.setattr(ProductRepository, "decrement_stock", lambda self, pid, qty: False)

        with pytest.raises(Conflict):
            service.place_order(customer, _request(product.id))
        assert service.list_orders(customer.id) == []

    @pytest.mark.parametrize(
        "overrides,message",
        [
            ({"shipping_address": None}, "Invalid request data"),
            ({"shipping_address": ADDRESS.model_copy(update={"city": "  "})}, "Missing required shipping address fields"),
            ({"cart_items": []}, "Invalid request data"),
            ({"payment_method": "easypaisa"}, "Transaction ID is required"),
        ],
    )
    def test_rejects_invalid_requests(self, service, customer, make_product, overrides, message):
        product = make_product()
        with pytest.raises(ValidationFailed, match=message):
            service.place_order(customer, _request(product.id, **overrides))

    def test_unknown_product(self, service, customer):
        with pytest.raises(ValidationFailed, match="Product missing-id not found"):
            service.place_order(customer, _request("missing-id"))

    def test_idempotent_replay(self, service, session, customer, make_product):
        """Should return the original order for a repeated key without taking stock again."""
        product = make_product(stock=5)
        first = service.place_order(customer, _request(product.id), idempotency_key="key-1")
        second = service.place_order(customer, _request(product.id), idempotency_key="key-1")

        assert first.created is True
        assert second.created is False
        assert second.order.id == first.order.id
        assert ProductRepository(session).get(product.id).stock == 4
        assert len(service.list_orders(customer.id)) == 1


class TestOrderLifecycle:
    @pytest.fixture
    def service(self, session: Session) -> OrderService:
        return OrderService(session)

    def test_history_and_detail(self, service, customer, make_profile, make_product):
        product = make_product()
        placed = service.place_order(customer, _request(product.id))

        assert [o.id for o in service.list_orders(customer.id)] == [placed.order.id]
        order, items = service.get_order(customer.id, placed.order.id)
        assert order.id == placed.order.id
        assert service.item_products(items)[product.id].name == product.name

        stranger = make_profile()
        with pytest.raises(NotFound, match="Order not found"):
            service.get_order(stranger.id, placed.order.id)

    def test_cancel_restores_stock(self, service, session, customer, make_product):
        product = make_product(stock=5)
        placed = service.place_order(customer, _request(product.id, 3))

        cancelled = service.cancel_order(customer.id, placed.order.id)
        assert cancelled.status == OrderStatus.CANCELLED
        assert ProductRepository(session).get(product.id).stock == 5

        with pytest.raises(Conflict, match="cannot be cancelled once it is cancelled"):
            service.cancel_order(customer.id, placed.order.id)

    def test_attach_payment_proof(self, service, customer, make_product, storage: StorageService):
        product = make_product()
        placed = service.place_order(
            customer, _request(product.id, payment_method="bank_transfer", transaction_id="TXN12345")
        )

        first = service.attach_payment_proof(
            customer.id, placed.order.id, storage, b"%PDF-1.4", "application/pdf", "proof.pdf"
        )
        bucket, key = storage.locate(first.payment_proof_url)
        assert bucket == PAYMENT_PROOFS
        assert key.startswith(f"{customer.id}/{placed.order.id}-")

        second = service.attach_payment_proof(
            customer.id, placed.order.id, storage, b"\x89PNG", "image/png", "proof.png"
        )
        assert second.status == OrderStatus.AWAITING_PAYMENT
        # The replaced proof is removed
        assert storage.path_for(bucket, key) is None

    def test_payment_proof_only_while_pending(self, service, customer, make_product, storage):
        product = make_product()
        placed = service.place_order(customer, _request(product.id))
        with pytest.raises(Conflict, match="only be uploaded while payment is pending"):
            service.attach_payment_proof(
                customer.id, placed.order.id, storage, b"\x89PNG", "image/png"
            )
