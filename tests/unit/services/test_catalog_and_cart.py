import pytest
from sqlmodel import Session

from src.storefront.core.errors import NotFound, ValidationFailed
from src.storefront.core.services.cart import CartService
from src.storefront.core.services.cart.cart_service import merge_lines
from src.storefront.core.services.catalog import CatalogService, ProductQuery


class TestCatalogService:
    """Public browsing."""

    @pytest.fixture
    def catalog(self, session: Session, make_product) -> CatalogService:
        make_product(name="Casio Duro", brand="Casio", price=9000, category="Sports Watches")
        make_product(name="Seiko 5", brand="Seiko", price=25000, stock=0)
        make_product(name="Orient Bambino", brand="Orient", price=30000, category="Luxury Collection")
        make_product(name="Casio Baby-G", brand="Casio", price=12000, category="Women's Watches")
        return CatalogService(session)

    def test_sorting(self, catalog):
        names = lambda page: [p.name for p in page.products]  # noqa: E731
        assert names(catalog.list_products(ProductQuery(sort="price-asc")))[0] == "Casio Duro"
        assert names(catalog.list_products(ProductQuery(sort="price-desc")))[0] == "Orient Bambino"
        assert names(catalog.list_products(ProductQuery(sort="name-asc"))) == [
            "Casio Baby-G",
            "Casio Duro",
            "Orient Bambino",
            "Seiko 5",
        ]

    def test_filters(self, catalog):
        page = catalog.list_products(ProductQuery(brands=["Casio", ""], max_price=10000))
        assert [p.name for p in page.products] == ["Casio Duro"]

        page = catalog.list_products(ProductQuery(category="luxury collection"))
        assert page.total == 1

        page = catalog.list_products(ProductQuery(in_stock=True))
        assert page.total == 3

    def test_paging(self, catalog):
        page = catalog.list_products(ProductQuery(limit=3, page=2, sort="price-asc"))
        assert page.total == 4
        assert page.total_pages == 2
        assert [p.name for p in page.products] == ["Orient Bambino"]

    def test_empty_result_has_no_pages(self, catalog):
        page = catalog.list_products(ProductQuery(search="rolex"))
        assert page.total == 0
        assert page.total_pages == 0

    def test_facets(self, catalog):
        facets = catalog.facets()
        assert facets.brands == ["Casio", "Orient", "Seiko"]
        assert facets.min_price == 9000
        assert facets.max_price == 30000

    def test_get_and_related(self, catalog):
        duro = catalog.list_products(ProductQuery(search="duro")).products[0]
        assert catalog.get_product(duro.id) == duro
        assert catalog.related(duro) == []
        with pytest.raises(NotFound, match="Product not found"):
            catalog.get_product("missing")


class TestCartService:
    """Server-side cart."""

    @pytest.fixture
    def cart(self, session: Session) -> CartService:
        return CartService(session)

    def test_merge_lines(self):
        assert merge_lines([("a", 1), ("b", 2), ("a", 3)]) == {"a": 4, "b": 2}

    def test_add_accumulates(self, cart, customer, make_product):
        product = make_product(price=1500)
        cart.add_item(customer.id, product.id, 1)
        view = cart.add_item(customer.id, product.id, 2)

        assert view.total_items == 3
        assert view.subtotal == 4500
        assert view.tax == 450
        assert view.shipping == 200
        assert view.total == 5150
        assert view.amount_to_free_shipping == 500
        assert view.items[0].line_total == 4500

    def test_add_validates(self, cart, customer, make_product):
        with pytest.raises(NotFound):
            cart.add_item(customer.id, "missing", 1)
        with pytest.raises(ValidationFailed, match="Quantity must be at least 1"):
            cart.add_item(customer.id, make_product().id, 0)

    def test_update_and_remove(self, cart, customer, make_product):
        product = make_product()
        cart.add_item(customer.id, product.id, 1)
        assert cart.update_quantity(customer.id, product.id, 5).total_items == 5
        assert cart.update_quantity(customer.id, product.id, 0).items == []

        cart.add_item(customer.id, product.id, 1)
        assert cart.remove_item(customer.id, product.id).items == []

    def test_empty_cart_costs_nothing(self, cart, customer):
        view = cart.view(customer.id)
        assert view.total_items == 0
        assert view.shipping == 0
        assert view.total == 0

    def test_replace_skips_unknown_products(self, cart, customer, make_product):
        kept = make_product()
        dropped = make_product()
        cart.add_item(customer.id, dropped.id, 1)

        view = cart.replace(
            customer.id, [(kept.id, 1), (kept.id, 1), ("ghost", 2), (dropped.id, 0)]
        )
        assert [(line.product.id, line.quantity) for line in view.items] == [(kept.id, 2)]
        assert view.skipped == ["ghost"]

    def test_clear(self, cart, customer, make_product):
        cart.add_item(customer.id, make_product().id, 2)
        assert cart.clear(customer.id).items == []

    def test_carts_are_per_user(self, cart, customer, make_profile, make_product):
        cart.add_item(customer.id, make_product().id, 1)
        assert cart.view(make_profile().id).items == []
