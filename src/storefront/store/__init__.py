"""Store module for e-commerce functionality.

Provides the shopping cart, the checkout that turns a cart into an order,
and the order lifecycle.
"""
