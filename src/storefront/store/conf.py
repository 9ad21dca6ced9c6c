"""Store configuration.

Shipping, tax and order-numbering rules are read from ``settings.STORE``
through this module only, so the cart summary and checkout can never
disagree on prices.
"""

from decimal import Decimal

from django.conf import settings

DEFAULTS = {
    # Pricing
    "FREE_SHIPPING_THRESHOLD": Decimal("150.00"),
    "FLAT_SHIPPING_FEE": Decimal("15.00"),
    "TAX_RATE": Decimal("0.18"),

    # Order numbering
    "ORDER_NUMBER_PREFIX": "ORD",
    "ORDER_NUMBER_ATTEMPTS": 5,

    # Transient storage failure retries
    "CHECKOUT_RETRY_ATTEMPTS": 3,
    "CHECKOUT_RETRY_BACKOFF": 0.05,

    # Checkout form fallbacks
    "DEFAULT_SHIPPING_CITY": "Not specified",
    "DEFAULT_PAYMENT_METHOD": "Cash on Delivery",
}


def get_config():
    """Get store configuration from settings."""
    user_config = getattr(settings, "STORE", {})
    return {**DEFAULTS, **user_config}


def get_setting(name, default=None):
    """Get a specific store setting."""
    config = get_config()
    return config.get(name, default)


def get_decimal_setting(name) -> Decimal:
    """Get a money/rate setting as a Decimal, whatever type settings hold."""
    return Decimal(str(get_setting(name)))
