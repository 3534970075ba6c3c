"""Order money rules: subtotal, tax, shipping and the COD surcharge."""

from collections.abc import Iterable
from dataclasses import asdict, dataclass
from decimal import ROUND_HALF_UP, Decimal

from src.storefront.runtime.context import get_config


@dataclass(frozen=True)
class OrderTotals:
    subtotal: float
    tax: float
    shipping: float
    total: float

    def as_dict(self) -> dict[str, float]:
        return asdict(self)


def calculate_subtotal(lines: Iterable[tuple[float, int]]) -> float:
    """Sum ``unit_price * quantity`` over ``(unit_price, quantity)`` pairs."""
    return round(sum(price * quantity for price, quantity in lines), 2)


def calculate_shipping(subtotal: float) -> float:
    store = get_config().store
    if subtotal >= store.free_shipping_threshold:
        return 0.0
    return float(store.shipping_fee)


def amount_to_free_shipping(subtotal: float) -> float:
    threshold = get_config().store.free_shipping_threshold
    return round(max(0.0, threshold - subtotal), 2)


def calculate_tax(subtotal: float) -> float:
    return round(subtotal * get_config().store.tax_rate, 2)


def cod_fee(payment_method: str | None) -> float:
    if payment_method == "cod":
        return float(get_config().store.cod_fee)
    return 0.0


def calculate_totals(
    lines: Iterable[tuple[float, int]], payment_method: str | None = None
) -> OrderTotals:
    """Price an order; without a payment method no COD fee is added."""
    subtotal = calculate_subtotal(lines)
    tax = calculate_tax(subtotal)
    shipping = round(calculate_shipping(subtotal) + cod_fee(payment_method), 2)
    return OrderTotals(
        subtotal=subtotal,
        tax=tax,
        shipping=shipping,
        total=round(subtotal + tax + shipping, 2),
    )


def format_price(amount: float) -> str:
    """Render an amount the way the store prints it, e.g. ``Rs. 2,499``."""
    symbol = get_config().store.currency_symbol
    whole = Decimal(str(amount)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return f"{symbol} {int(whole):,}"
