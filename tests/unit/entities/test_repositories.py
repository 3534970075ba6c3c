from sqlmodel import Session

from src.storefront.entities.core.profile import Profile, ProfileRepository
from src.storefront.entities.service.cart import CartItemRepository
from src.storefront.entities.service.contact import ContactMessage, ContactMessageRepository
from src.storefront.entities.service.order import Order, OrderItem, OrderRepository
from src.storefront.entities.service.product import ProductRepository


class TestProfileRepository:
    def test_emails_are_normalised(self, session: Session):
        repo = ProfileRepository(session)
        created = repo.create(Profile(email="  Ayesha@Example.COM ", password_hash="x"))
        session.commit()

        assert created.email == "ayesha@example.com"
        assert repo.get_by_email("AYESHA@example.com ") == created
        assert repo.count() == 1

    def test_list_by_role(self, session: Session, customer, admin):
        repo = ProfileRepository(session)
        assert repo.list_all("admin") == [admin]
        assert set(repo.list_all()) == {customer, admin}

    def test_public_dict_hides_hash(self, customer):
        data = customer.public_dict()
        assert "password_hash" not in data
        assert data["email"] == "ayesha@example.com"


class TestProductRepository:
    """Catalog queries."""

    def test_search_filters_and_counts(self, session: Session, make_product):
        make_product(name="Seiko Presage", brand="Seiko", price=45000, category="Luxury Collection")
        make_product(name="Casio Edifice", brand="Casio", price=18000)
        make_product(name="Casio Vintage", brand="Casio", price=6000, stock=0)

        repo = ProductRepository(session)
        products, total = repo.search(brands=["Casio"], in_stock=True)
        assert total == 1
        assert [p.name for p in products] == ["Casio Edifice"]

        products, total = repo.search(search="PRESAGE")
        assert total == 1 and products[0].brand == "Seiko"

        products, total = repo.search(min_price=6000, max_price=18000, sort_by="price", descending=False)
        assert [p.price for p in products] == [6000, 18000]

    def test_search_pages(self, session: Session, make_product):
        for price in (100, 200, 300, 400, 500):
            make_product(price=price)
        products, total = ProductRepository(session).search(
            sort_by="price", descending=True, offset=2, limit=2
        )
        assert total == 5
        assert [p.price for p in products] == [300, 200]

    def test_search_escapes_wildcards(self, session: Session, make_product):
        make_product(name="Watch 100% Steel")
        make_product(name="Watch 1000 Steel")
        _, total = ProductRepository(session).search(search="100%")
        assert total == 1

    def test_facets(self, session: Session, make_product):
        make_product(brand="Seiko", price=500, category="Sports Watches")
        make_product(brand="Casio", price=1500)
        repo = ProductRepository(session)
        assert repo.brands() == ["Casio", "Seiko"]
        assert repo.categories() == ["Men's Watches", "Sports Watches"]
        assert repo.price_range() == (500, 1500)

    def test_facets_on_empty_catalog(self, session: Session):
        repo = ProductRepository(session)
        assert repo.brands() == []
        assert repo.categories() == []
        assert repo.price_range() == (0, 0)

    def test_related_excludes_product(self, session: Session, make_product):
        main = make_product()
        sibling = make_product()
        make_product(category="Women's Watches")
        assert ProductRepository(session).related(main) == [sibling]

    def test_guarded_stock_decrement(self, session: Session, make_product):
        """Should never take more units than are left."""
        product = make_product(stock=3)
        repo = ProductRepository(session)

        assert repo.decrement_stock(product.id, 2) is True
        assert repo.decrement_stock(product.id, 2) is False
        assert repo.get(product.id).stock == 1

        repo.increment_stock(product.id, 4)
        assert repo.get(product.id).stock == 5

    def test_low_stock(self, session: Session, make_product):
        make_product(name="Plenty", stock=50)
        make_product(name="Few", stock=3)
        make_product(name="None", stock=0)
        low = ProductRepository(session).low_stock(10)
        assert [p.name for p in low] == ["None", "Few"]


class TestCartItemRepository:
    def test_set_quantity_upserts(self, session: Session, customer, make_product):
        product = make_product()
        repo = CartItemRepository(session)

        repo.set_quantity(customer.id, product.id, 1)
        repo.set_quantity(customer.id, product.id, 4)
        lines = repo.list_with_products(customer.id)
        assert len(lines) == 1
        item, joined = lines[0]
        assert item.quantity == 4
        assert joined == product

    def test_remove_product_everywhere(self, session: Session, make_profile, make_product):
        product = make_product()
        other = make_product()
        first, second = make_profile(), make_profile()
        repo = CartItemRepository(session)
        repo.set_quantity(first.id, product.id, 1)
        repo.set_quantity(second.id, product.id, 2)
        repo.set_quantity(second.id, other.id, 1)

        assert repo.remove_product_everywhere(product.id) == 2
        assert repo.list_with_products(first.id) == []
        assert len(repo.list_with_products(second.id)) == 1


class TestOrderRepository:
    def _order(self, session: Session, user_id: str, status: str = "pending", total: float = 1000):
        order = Order(user_id=user_id, total_amount=total, status=status, shipping_address={"city": "Lahore"})
        item = OrderItem(order_id=order.id, product_id="p-1", quantity=1, price=total, product_name="Watch")
        created = OrderRepository(session).create(order, [item])
        session.commit()
        return created

    def test_create_with_items(self, session: Session, customer):
        order = self._order(session, customer.id)
        repo = OrderRepository(session)
        assert repo.get(order.id).shipping_address == {"city": "Lahore"}
        assert [i.product_name for i in repo.items(order.id)] == ["Watch"]
        assert repo.get_for_user(order.id, "someone-else") is None

    def test_user_totals_skip_cancelled(self, session: Session, customer):
        self._order(session, customer.id, total=1000)
        self._order(session, customer.id, total=500, status="cancelled")
        assert OrderRepository(session).user_totals(customer.id) == (2, 1000)

    def test_search_with_customer(self, session: Session, customer, admin):
        mine = self._order(session, customer.id)
        self._order(session, admin.id, status="shipped")
        rows, total = OrderRepository(session).search_with_customer(search="ayesha")
        assert total == 1
        order, profile = rows[0]
        assert order.id == mine.id
        assert profile == customer

    def test_totals_by_payment_method(self, session: Session, customer):
        self._order(session, customer.id, status="processing", total=1000)
        self._order(session, customer.id, status="pending", total=700)
        repo = OrderRepository(session)
        assert repo.totals_by_payment_method(["processing"]) == {"cod": (1, 1000)}
        assert repo.totals_by_payment_method() == {"cod": (2, 1700)}


def test_contact_messages_are_stored(session: Session):
    repo = ContactMessageRepository(session)
    stored = repo.create(
        ContactMessage(name="Ali", email="ali@example.com", subject="Hi", message="Hello")
    )
    session.commit()
    assert stored.id
    assert stored.subject == "Hi"
