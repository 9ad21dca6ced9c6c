"""Cart and order pricing.

One implementation of the shipping and tax rules, shared by the cart
summary and checkout. Rates and thresholds come from ``storefront.store.conf``.
"""

from decimal import Decimal, ROUND_HALF_EVEN
from typing import NamedTuple

from .conf import get_decimal_setting

ZERO = Decimal("0.00")


class CartTotals(NamedTuple):
    """Result of pricing a subtotal."""

    subtotal: Decimal
    shipping_cost: Decimal
    tax_amount: Decimal
    grand_total: Decimal


def round_money(amount: Decimal, places: int = 2) -> Decimal:
    """Round to specified decimal places using banker's rounding."""
    quantize_str = "0." + "0" * places
    return amount.quantize(Decimal(quantize_str), rounding=ROUND_HALF_EVEN)


def calculate_line_total(unit_price: Decimal, quantity: int) -> Decimal:
    return round_money(unit_price * quantity)


def calculate_shipping(subtotal: Decimal) -> Decimal:
    """Flat fee below the free-shipping threshold, zero at or above it."""
    if subtotal >= get_decimal_setting("FREE_SHIPPING_THRESHOLD"):
        return ZERO
    return round_money(get_decimal_setting("FLAT_SHIPPING_FEE"))


def calculate_tax(subtotal: Decimal) -> Decimal:
    return round_money(subtotal * get_decimal_setting("TAX_RATE"))


def calculate_totals(subtotal: Decimal) -> CartTotals:
    """Price a subtotal: shipping, tax and grand total.

    An empty cart (subtotal 0) still reports the flat shipping fee here;
    callers that show empty carts decide whether to display it.

    Example:
        calculate_totals(Decimal("100.00"))
        # CartTotals(subtotal=100.00, shipping_cost=15.00, tax_amount=18.00, grand_total=133.00)
    """
    subtotal = round_money(subtotal)
    shipping_cost = calculate_shipping(subtotal)
    tax_amount = calculate_tax(subtotal)
    return CartTotals(
        subtotal=subtotal,
        shipping_cost=shipping_cost,
        tax_amount=tax_amount,
        grand_total=subtotal + shipping_cost + tax_amount,
    )
