"""Shared pytest fixtures for storefront tests."""

from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.test import Client
from rest_framework.authtoken.models import Token


User = get_user_model()


@pytest.fixture
def client():
    """Return a Django test client."""
    return Client()


@pytest.fixture
def user(db):
    """Create a customer."""
    return User.objects.create_user(
        email="customer@example.com",
        password="testpass123",
        first_name="Test",
        last_name="Customer",
    )


@pytest.fixture
def other_user(db):
    """Create a second customer."""
    return User.objects.create_user(
        email="other@example.com",
        password="testpass123",
    )


@pytest.fixture
def staff_user(db):
    """Create a staff user."""
    return User.objects.create_user(
        email="staff@example.com",
        password="testpass123",
        is_staff=True,
    )


@pytest.fixture
def auth_headers(user):
    """Authorization header for the customer."""
    token = Token.objects.create(user=user)
    return {"Authorization": f"Bearer {token.key}"}


@pytest.fixture
def staff_headers(staff_user):
    """Authorization header for the staff user."""
    token = Token.objects.create(user=staff_user)
    return {"Authorization": f"Bearer {token.key}"}


@pytest.fixture
def category(db):
    """Create a catalog category."""
    from storefront.catalog.models import Category

    return Category.objects.create(name="Shirts", slug="shirts")


@pytest.fixture
def make_product(db, category):
    """Factory for products in the test category."""
    from storefront.catalog.models import Product

    def _make(name="Classic T-Shirt", price="50.00", stock=10, **kwargs):
        kwargs.setdefault("category", category)
        return Product.objects.create(
            name=name,
            price=Decimal(price),
            stock_quantity=stock,
            **kwargs,
        )

    return _make


@pytest.fixture
def product(make_product):
    """A 50.00 product with 10 in stock."""
    return make_product()


@pytest.fixture
def second_product(make_product):
    """A 20.00 product with 5 in stock."""
    return make_product(name="Denim Jeans", price="20.00", stock=5, sku="JEANS-001")


@pytest.fixture
def make_order(db):
    """Factory for orders created directly, bypassing checkout."""
    from storefront.store.models import Order, OrderItem

    def _make(user, order_number="ORD-TEST-0001", status="pending", lines=()):
        order = Order.objects.create(
            user=user,
            order_number=order_number,
            status=status,
            subtotal=Decimal("0.00"),
            shipping_cost=Decimal("0.00"),
            tax_amount=Decimal("0.00"),
            total_amount=Decimal("0.00"),
            shipping_address="Street 1",
            shipping_city="Istanbul",
        )
        for product, quantity in lines:
            OrderItem.objects.create(
                order=order,
                product=product,
                product_name=product.name,
                unit_price=product.price,
                quantity=quantity,
                line_total=product.price * quantity,
            )
        return order

    return _make
