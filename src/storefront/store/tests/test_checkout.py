"""Tests for checkout: cart to order with stock reconciliation."""

from decimal import Decimal
from unittest.mock import patch

import pytest
from django.db import IntegrityError, OperationalError

from storefront.store.exceptions import (
    EmptyCart,
    InsufficientStock,
    OrderNumberConflict,
    ProductUnavailable,
    ShippingAddressRequired,
    StorageError,
)
from storefront.store.models import CartItem, Order, OrderItem, OrderStatus
from storefront.store.services import cart as cart_service
from storefront.store.services import checkout as checkout_module
from storefront.store.services.checkout import checkout


@pytest.fixture
def filled_cart(user, product, second_product):
    """2 x 50.00 and 1 x 20.00 in the customer's cart."""
    cart_service.add_item(user, product.pk, 2)
    cart_service.add_item(user, second_product.pk, 1)
    return user


@pytest.mark.django_db
class TestCheckoutSuccess:
    """Successful checkouts."""

    def test_creates_pending_order_with_totals(self, filled_cart):
        order = checkout(filled_cart, "Street 1", "Istanbul", "Credit Card")

        assert order.status == OrderStatus.PENDING
        assert order.subtotal == Decimal("120.00")
        assert order.shipping_cost == Decimal("15.00")
        assert order.tax_amount == Decimal("21.60")
        assert order.total_amount == Decimal("156.60")
        assert order.total_amount == order.subtotal + order.shipping_cost + order.tax_amount
        assert order.shipping_address == "Street 1"
        assert order.shipping_city == "Istanbul"
        assert order.payment_method == "Credit Card"

    def test_snapshots_lines(self, filled_cart, product, second_product):
        order = checkout(filled_cart, "Street 1", "Istanbul", "Card")

        items = list(order.items.all())
        assert [(i.product_id, i.product_name, i.unit_price, i.quantity, i.line_total) for i in items] == [
            (product.pk, "Classic T-Shirt", Decimal("50.00"), 2, Decimal("100.00")),
            (second_product.pk, "Denim Jeans", Decimal("20.00"), 1, Decimal("20.00")),
        ]
        assert items[1].product_sku == "JEANS-001"

    def test_deducts_stock_and_clears_cart(self, filled_cart, product, second_product):
        checkout(filled_cart, "Street 1", "Istanbul", "Card")

        product.refresh_from_db()
        second_product.refresh_from_db()
        assert product.stock_quantity == 8
        assert second_product.stock_quantity == 4
        assert not CartItem.objects.filter(user=filled_cart).exists()

    def test_free_shipping_at_threshold(self, user, make_product):
        item = make_product(name="Coat", price="150.00", stock=1)
        cart_service.add_item(user, item.pk, 1)

        order = checkout(user, "Street 1")

        assert order.shipping_cost == Decimal("0.00")
        assert order.total_amount == Decimal("177.00")

    def test_defaults_for_city_and_payment(self, filled_cart):
        order = checkout(filled_cart, "Street 1")

        assert order.shipping_city == "Not specified"
        assert order.payment_method == "Cash on Delivery"

    def test_optional_fields(self, filled_cart):
        order = checkout(
            filled_cart,
            "  Street 1  ",
            "Izmir",
            "Card",
            shipping_postal_code="35000",
            shipping_phone="555",
            notes="Ring twice",
        )

        assert order.shipping_address == "Street 1"
        assert order.shipping_postal_code == "35000"
        assert order.shipping_phone == "555"
        assert order.notes == "Ring twice"

    def test_only_touches_callers_cart(self, filled_cart, other_user, product):
        cart_service.add_item(other_user, product.pk, 1)

        checkout(filled_cart, "Street 1")

        assert CartItem.objects.filter(user=other_user).count() == 1

    def test_order_lines_survive_catalog_edits(self, filled_cart, product):
        """Later price and name changes never alter historical orders."""
        order = checkout(filled_cart, "Street 1")

        product.name = "Renamed"
        product.price = Decimal("999.00")
        product.save()

        item = OrderItem.objects.get(order=order, product=product)
        assert item.product_name == "Classic T-Shirt"
        assert item.unit_price == Decimal("50.00")
        order.refresh_from_db()
        assert order.total_amount == Decimal("156.60")

    def test_order_number_format(self, filled_cart):
        order = checkout(filled_cart, "Street 1")

        assert order.order_number.startswith("ORD-")
        assert len(order.order_number.split("-")) == 3


@pytest.mark.django_db
class TestCheckoutValidation:
    """Validation failures abort before any mutation."""

    def test_empty_cart(self, user, product):
        with pytest.raises(EmptyCart):
            checkout(user, "Street 1")

        assert Order.objects.count() == 0
        product.refresh_from_db()
        assert product.stock_quantity == 10

    def test_empty_cart_reported_before_missing_address(self, user):
        with pytest.raises(EmptyCart):
            checkout(user, "")

    @pytest.mark.parametrize("address", ["", "   ", None])
    def test_shipping_address_required(self, filled_cart, address):
        with pytest.raises(ShippingAddressRequired):
            checkout(filled_cart, address)

        assert Order.objects.count() == 0
        assert CartItem.objects.filter(user=filled_cart).count() == 2

    def test_stock_changed_since_cart_viewed(self, filled_cart, product, second_product):
        """Stock is re-read at checkout; one short line fails the whole order."""
        product.stock_quantity = 1
        product.save(update_fields=["stock_quantity"])

        with pytest.raises(InsufficientStock) as exc_info:
            checkout(filled_cart, "Street 1")

        assert exc_info.value.details == {
            "product_id": product.pk,
            "product_name": "Classic T-Shirt",
            "requested": 2,
            "available": 1,
        }
        assert Order.objects.count() == 0
        assert OrderItem.objects.count() == 0
        second_product.refresh_from_db()
        assert second_product.stock_quantity == 5
        assert CartItem.objects.filter(user=filled_cart).count() == 2

    def test_inactive_product(self, filled_cart, second_product, product):
        second_product.is_active = False
        second_product.save(update_fields=["is_active"])

        with pytest.raises(ProductUnavailable) as exc_info:
            checkout(filled_cart, "Street 1")

        assert exc_info.value.details["product_id"] == second_product.pk
        assert Order.objects.count() == 0
        product.refresh_from_db()
        assert product.stock_quantity == 10


@pytest.mark.django_db
class TestCheckoutAtomicity:
    """A failure during the write phase rolls everything back."""

    def test_write_failure_rolls_back(self, filled_cart, product, second_product):
        real_deduct = checkout_module._deduct_stock
        calls = []

        def failing_deduct(item, quantity):
            calls.append(item.pk)
            if len(calls) == 2:
                raise IntegrityError("simulated write failure")
            real_deduct(item, quantity)

        with patch.object(checkout_module, "_deduct_stock", side_effect=failing_deduct):
            with pytest.raises(IntegrityError):
                checkout(filled_cart, "Street 1")

        product.refresh_from_db()
        second_product.refresh_from_db()
        assert product.stock_quantity == 10
        assert second_product.stock_quantity == 5
        assert Order.objects.count() == 0
        assert OrderItem.objects.count() == 0
        assert CartItem.objects.filter(user=filled_cart).count() == 2

    def test_guarded_decrement_refuses_oversell(self, user, product):
        """The conditional UPDATE never lets stock go negative."""
        with pytest.raises(InsufficientStock) as exc_info:
            checkout_module._deduct_stock(product, 11)

        assert exc_info.value.details["available"] == 10
        product.refresh_from_db()
        assert product.stock_quantity == 10

    def test_transient_failure_surfaces_storage_error(self, filled_cart):
        """Inside an outer transaction no retry is possible; the caller sees StorageError."""
        with patch.object(
            checkout_module,
            "_lock_products",
            side_effect=OperationalError("deadlock detected"),
        ):
            with pytest.raises(StorageError):
                checkout(filled_cart, "Street 1")

        assert Order.objects.count() == 0


@pytest.mark.django_db
class TestOrderNumbers:
    """Order numbers are unique; collisions are retried, never overwritten."""

    def test_collision_is_retried(self, filled_cart, other_user, make_order):
        existing = make_order(other_user, order_number="ORD-20260101-AAAAAA")

        with patch.object(
            checkout_module,
            "generate_order_number",
            side_effect=["ORD-20260101-AAAAAA", "ORD-20260101-BBBBBB"],
        ):
            order = checkout(filled_cart, "Street 1")

        assert order.order_number == "ORD-20260101-BBBBBB"
        existing.refresh_from_db()
        assert existing.user == other_user
        assert Order.objects.count() == 2

    def test_exhausted_attempts_raise_conflict(self, filled_cart, other_user, make_order, settings, product):
        make_order(other_user, order_number="ORD-20260101-AAAAAA")
        settings.STORE = {**settings.STORE, "ORDER_NUMBER_ATTEMPTS": 3}

        with patch.object(
            checkout_module,
            "generate_order_number",
            return_value="ORD-20260101-AAAAAA",
        ) as generator:
            with pytest.raises(OrderNumberConflict):
                checkout(filled_cart, "Street 1")

        assert generator.call_count == 3
        assert Order.objects.count() == 1
        product.refresh_from_db()
        assert product.stock_quantity == 10
        assert CartItem.objects.filter(user=filled_cart).count() == 2

    def test_generated_numbers_differ(self):
        numbers = {checkout_module.generate_order_number() for _ in range(50)}
        assert len(numbers) == 50
