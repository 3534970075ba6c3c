import pytest

from src.storefront.core.services.checkout.pricing import (
    amount_to_free_shipping,
    calculate_shipping,
    calculate_subtotal,
    calculate_tax,
    calculate_totals,
    cod_fee,
    format_price,
)
from src.storefront.runtime.config.config_data import ConfigData, StoreConfig
from src.storefront.runtime.context import with_context


class TestOrderTotals:
    """Money rules for carts and orders under the default store settings."""

    def test_subtotal_sums_lines(self):
        """Should multiply unit price by quantity for each line."""
        assert calculate_subtotal([(1000.0, 2), (499.5, 1)]) == 2499.5
        assert calculate_subtotal([]) == 0

    def test_tax_is_ten_percent(self):
        """Should apply the configured tax rate and round to cents."""
        assert calculate_tax(1999.99) == 200.0
        assert calculate_tax(0) == 0

    @pytest.mark.parametrize(
        "subtotal,expected",
        [(0, 200.0), (4999.99, 200.0), (5000, 0.0), (12000, 0.0)],
    )
    def test_shipping_threshold(self, subtotal, expected):
        """Should charge shipping below the free-shipping threshold only."""
        assert calculate_shipping(subtotal) == expected

    def test_amount_to_free_shipping(self):
        """Should report how much more is needed for free shipping."""
        assert amount_to_free_shipping(3000) == 2000
        assert amount_to_free_shipping(7000) == 0

    def test_cod_fee_only_for_cod(self):
        """Should add the surcharge only for cash on delivery."""
        assert cod_fee("cod") == 200
        assert cod_fee("bank_transfer") == 0
        assert cod_fee(None) == 0

    def test_totals_for_cod_order(self):
        """Should fold the COD fee into shipping."""
        totals = calculate_totals([(1000.0, 2)], "cod")
        assert totals.subtotal == 2000
        assert totals.tax == 200
        assert totals.shipping == 400
        assert totals.total == 2600

    def test_totals_free_shipping_still_pays_cod_fee(self):
        """Should waive shipping above the threshold but keep the COD fee."""
        totals = calculate_totals([(6000.0, 1)], "cod")
        assert totals.shipping == 200
        assert totals.total == 6000 + 600 + 200

    def test_totals_without_payment_method(self):
        """Should price a preview without any surcharge."""
        totals = calculate_totals([(6000.0, 1)])
        assert totals.as_dict() == {
            "subtotal": 6000,
            "tax": 600,
            "shipping": 0,
            "total": 6600,
        }

    def test_store_settings_are_read_from_config(self):
        """Should follow overridden tax and shipping settings."""
        override = ConfigData(store=StoreConfig(tax_rate=0.0, shipping_fee=150))
        with with_context(override):
            totals = calculate_totals([(100.0, 1)], "jazzcash")
        assert totals.tax == 0
        assert totals.shipping == 150
        assert totals.total == 250


class TestFormatPrice:
    def test_formats_with_currency_and_grouping(self):
        assert format_price(2499) == "Rs. 2,499"
        assert format_price(1234567.5) == "Rs. 1,234,568"
