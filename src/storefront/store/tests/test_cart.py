"""Tests for the cart service."""

from decimal import Decimal
from unittest.mock import patch

import pytest

from storefront.store.exceptions import (
    CartItemNotFound,
    InsufficientStock,
    InvalidQuantity,
    ProductNotFound,
)
from storefront.store.models import CartItem
from storefront.store.services import cart as cart_service


@pytest.mark.django_db
class TestAddItem:
    """Tests for add_item."""

    def test_creates_line(self, user, product):
        line = cart_service.add_item(user, product.pk, 2)

        assert line.quantity == 2
        assert CartItem.objects.filter(user=user).count() == 1

    def test_adding_same_product_increments(self, user, product):
        """A product already in the cart is merged, not duplicated."""
        cart_service.add_item(user, product.pk, 2)
        line = cart_service.add_item(user, product.pk, 3)

        assert line.quantity == 5
        assert CartItem.objects.filter(user=user, product=product).count() == 1

    def test_missing_product(self, user):
        with pytest.raises(ProductNotFound):
            cart_service.add_item(user, 99999, 1)

    def test_inactive_product(self, user, make_product):
        inactive = make_product(name="Retired", is_active=False)

        with pytest.raises(ProductNotFound):
            cart_service.add_item(user, inactive.pk, 1)

    def test_quantity_exceeding_stock(self, user, product):
        with pytest.raises(InsufficientStock) as exc_info:
            cart_service.add_item(user, product.pk, 11)

        assert exc_info.value.details["requested"] == 11
        assert exc_info.value.details["available"] == 10
        assert not CartItem.objects.exists()

    def test_existing_plus_new_exceeding_stock(self, user, product):
        """The check covers the merged quantity, not just the new amount."""
        cart_service.add_item(user, product.pk, 8)

        with pytest.raises(InsufficientStock) as exc_info:
            cart_service.add_item(user, product.pk, 3)

        assert exc_info.value.details["requested"] == 11
        assert CartItem.objects.get(user=user).quantity == 8

    @pytest.mark.parametrize("quantity", [0, -1, "abc", None])
    def test_invalid_quantity(self, user, product, quantity):
        with pytest.raises(InvalidQuantity):
            cart_service.add_item(user, product.pk, quantity)

    @pytest.mark.parametrize("quantity", [2.9, 0.5, True, False, "2.5"])
    def test_fractional_and_boolean_quantities_rejected(self, user, product, quantity):
        """Quantities are never truncated or coerced from booleans."""
        with pytest.raises(InvalidQuantity):
            cart_service.add_item(user, product.pk, quantity)

        assert not CartItem.objects.exists()

    def test_whole_float_and_numeric_string_accepted(self, user, product):
        cart_service.add_item(user, product.pk, 2.0)
        line = cart_service.add_item(user, product.pk, "3")

        assert line.quantity == 5

    def test_line_created_concurrently_is_merged(self, user, product):
        """If another request inserts the line between lookup and insert, the add merges into it."""
        CartItem.objects.create(user=user, product=product, quantity=2)
        real_find_line = cart_service._find_line
        calls = []

        def stale_then_real(*args):
            calls.append(args)
            if len(calls) == 1:
                return None
            return real_find_line(*args)

        with patch.object(cart_service, "_find_line", side_effect=stale_then_real):
            line = cart_service.add_item(user, product.pk, 3)

        assert len(calls) == 2
        assert line.quantity == 5
        assert CartItem.objects.get(user=user, product=product).quantity == 5

    def test_concurrent_merge_still_checks_stock(self, user, product):
        CartItem.objects.create(user=user, product=product, quantity=8)
        real_find_line = cart_service._find_line
        calls = []

        def stale_then_real(*args):
            calls.append(args)
            return None if len(calls) == 1 else real_find_line(*args)

        with patch.object(cart_service, "_find_line", side_effect=stale_then_real):
            with pytest.raises(InsufficientStock):
                cart_service.add_item(user, product.pk, 3)

        assert CartItem.objects.get(user=user).quantity == 8

    def test_carts_are_per_user(self, user, other_user, product):
        cart_service.add_item(user, product.pk, 1)
        cart_service.add_item(other_user, product.pk, 4)

        assert CartItem.objects.get(user=user).quantity == 1
        assert CartItem.objects.get(user=other_user).quantity == 4


@pytest.mark.django_db
class TestUpdateQuantity:
    """Tests for update_quantity."""

    def test_sets_quantity(self, user, product):
        line = cart_service.add_item(user, product.pk, 1)

        updated = cart_service.update_quantity(user, line.pk, 7)

        assert updated.quantity == 7
        line.refresh_from_db()
        assert line.quantity == 7

    @pytest.mark.parametrize("quantity", [0, -3])
    def test_non_positive_removes_line(self, user, product, quantity):
        line = cart_service.add_item(user, product.pk, 1)

        assert cart_service.update_quantity(user, line.pk, quantity) is None
        assert not CartItem.objects.filter(pk=line.pk).exists()

    def test_exceeding_stock(self, user, product):
        line = cart_service.add_item(user, product.pk, 1)

        with pytest.raises(InsufficientStock):
            cart_service.update_quantity(user, line.pk, 11)

        line.refresh_from_db()
        assert line.quantity == 1

    @pytest.mark.parametrize("quantity", [1.5, True])
    def test_fractional_and_boolean_quantities_rejected(self, user, product, quantity):
        line = cart_service.add_item(user, product.pk, 2)

        with pytest.raises(InvalidQuantity):
            cart_service.update_quantity(user, line.pk, quantity)

        line.refresh_from_db()
        assert line.quantity == 2

    def test_other_users_line_not_found(self, user, other_user, product):
        line = cart_service.add_item(other_user, product.pk, 1)

        with pytest.raises(CartItemNotFound):
            cart_service.update_quantity(user, line.pk, 2)


@pytest.mark.django_db
class TestRemoveAndClear:
    """remove_item and clear_cart are idempotent."""

    def test_remove_item(self, user, product):
        line = cart_service.add_item(user, product.pk, 1)

        assert cart_service.remove_item(user, line.pk) is True
        assert cart_service.remove_item(user, line.pk) is False

    def test_remove_other_users_line(self, user, other_user, product):
        line = cart_service.add_item(other_user, product.pk, 1)

        assert cart_service.remove_item(user, line.pk) is False
        assert CartItem.objects.filter(pk=line.pk).exists()

    def test_clear_cart(self, user, other_user, product, second_product):
        cart_service.add_item(user, product.pk, 1)
        cart_service.add_item(user, second_product.pk, 1)
        cart_service.add_item(other_user, product.pk, 1)

        assert cart_service.clear_cart(user) == 2
        assert cart_service.clear_cart(user) == 0
        assert CartItem.objects.filter(user=other_user).count() == 1


@pytest.mark.django_db
class TestCartSummary:
    """Tests for get_cart_summary."""

    def test_empty_cart(self, user):
        summary = cart_service.get_cart_summary(user)

        assert summary.is_empty
        assert summary.total_items == 0
        assert summary.totals.grand_total == Decimal("0.00")
        assert summary.totals.shipping_cost == Decimal("0.00")

    def test_totals(self, user, product, second_product):
        """2 x 50.00 + 1 x 20.00 = 120.00, below the free shipping threshold."""
        cart_service.add_item(user, product.pk, 2)
        cart_service.add_item(user, second_product.pk, 1)

        summary = cart_service.get_cart_summary(user)

        assert summary.total_items == 3
        assert [line.line_total for line in summary.lines] == [Decimal("100.00"), Decimal("20.00")]
        assert summary.totals.subtotal == Decimal("120.00")
        assert summary.totals.shipping_cost == Decimal("15.00")
        assert summary.totals.tax_amount == Decimal("21.60")
        assert summary.totals.grand_total == Decimal("156.60")

    def test_flags_unavailable_lines(self, user, product):
        cart_service.add_item(user, product.pk, 5)
        product.stock_quantity = 3
        product.save(update_fields=["stock_quantity"])

        line = cart_service.get_cart_summary(user).lines[0]

        assert line.is_available is False
        assert line.available_stock == 3

    def test_summary_has_no_side_effects(self, user, product):
        cart_service.add_item(user, product.pk, 2)

        cart_service.get_cart_summary(user)
        cart_service.get_cart_summary(user)

        product.refresh_from_db()
        assert product.stock_quantity == 10
        assert CartItem.objects.get(user=user).quantity == 2
