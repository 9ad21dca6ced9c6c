"""Cart service: per-user product quantities awaiting checkout."""

import logging
from dataclasses import dataclass, field
from decimal import Decimal

from django.db import IntegrityError, transaction

from ..exceptions import CartItemNotFound, InsufficientStock, InvalidQuantity
from ..models import CartItem
from ..pricing import ZERO, CartTotals, calculate_line_total, calculate_totals
from ...catalog.services import get_active_product

logger = logging.getLogger(__name__)


@dataclass
class CartLineSummary:
    id: int
    product_id: int
    product_name: str
    unit_price: Decimal
    quantity: int
    line_total: Decimal
    is_available: bool
    available_stock: int
    image_url: str = ""


@dataclass
class CartSummary:
    lines: list[CartLineSummary] = field(default_factory=list)
    totals: CartTotals = CartTotals(ZERO, ZERO, ZERO, ZERO)

    @property
    def total_items(self) -> int:
        return sum(line.quantity for line in self.lines)

    @property
    def is_empty(self) -> bool:
        return not self.lines


def _validate_quantity(quantity) -> int:
    # bool is an int subclass; fractional quantities are rejected, not truncated
    if isinstance(quantity, bool):
        raise InvalidQuantity("Quantity must be a whole number")
    if isinstance(quantity, float) and not quantity.is_integer():
        raise InvalidQuantity("Quantity must be a whole number")
    try:
        return int(quantity)
    except (TypeError, ValueError):
        raise InvalidQuantity("Quantity must be a whole number")


def _get_line(user, line_id, *, for_update: bool = False) -> CartItem:
    queryset = CartItem.objects.select_related("product")
    if for_update:
        queryset = queryset.select_for_update()
    try:
        return queryset.get(pk=line_id, user=user)
    except (CartItem.DoesNotExist, ValueError, TypeError):
        raise CartItemNotFound(line_id)


def _find_line(user, product):
    return (
        CartItem.objects.select_for_update()
        .filter(user=user, product=product)
        .first()
    )


def _check_stock(product, requested: int) -> None:
    if requested > product.stock_quantity:
        raise InsufficientStock(
            product_id=product.pk,
            product_name=product.name,
            requested=requested,
            available=product.stock_quantity,
        )


def _merge_into(line, product, quantity: int) -> CartItem:
    requested = line.quantity + quantity
    _check_stock(product, requested)
    line.quantity = requested
    line.save(update_fields=["quantity", "updated_at"])
    return line


@transaction.atomic
def add_item(user, product_id, quantity) -> CartItem:
    """Add a product to the user's cart, merging with an existing line.

    Raises:
        InvalidQuantity: quantity below 1
        ProductNotFound: product missing or inactive
        InsufficientStock: existing + new quantity exceeds current stock
    """
    quantity = _validate_quantity(quantity)
    if quantity < 1:
        raise InvalidQuantity()

    product = get_active_product(product_id)

    line = _find_line(user, product)
    if line is not None:
        line = _merge_into(line, product, quantity)
    else:
        _check_stock(product, quantity)
        try:
            with transaction.atomic():
                line = CartItem.objects.create(user=user, product=product, quantity=quantity)
        except IntegrityError:
            # A concurrent request created the line first
            line = _merge_into(_find_line(user, product), product, quantity)

    logger.debug("Cart line %s for user %s now x%d", line.pk, user.pk, line.quantity)
    return line


@transaction.atomic
def update_quantity(user, line_id, quantity) -> CartItem | None:
    """Set a cart line's quantity. Zero or less removes the line.

    Returns:
        The updated CartItem, or None when the line was removed

    Raises:
        CartItemNotFound: no such line for this user
        InsufficientStock: quantity exceeds current stock
    """
    quantity = _validate_quantity(quantity)
    line = _get_line(user, line_id, for_update=True)

    if quantity <= 0:
        line.delete()
        return None

    _check_stock(line.product, quantity)

    line.quantity = quantity
    line.save(update_fields=["quantity", "updated_at"])
    return line


def remove_item(user, line_id) -> bool:
    """Delete one cart line. Returns False when there was nothing to delete."""
    try:
        deleted, _ = CartItem.objects.filter(pk=line_id, user=user).delete()
    except (ValueError, TypeError):
        return False
    return deleted > 0


def clear_cart(user) -> int:
    """Delete every line in the user's cart. Returns the number removed."""
    deleted, _ = CartItem.objects.filter(user=user).delete()
    return deleted


def get_cart_summary(user) -> CartSummary:
    """Current cart lines with live prices and computed totals.

    Read only. Shipping and tax are zero for an empty cart.
    """
    items = (
        CartItem.objects.filter(user=user)
        .select_related("product")
        .order_by("added_at", "id")
    )

    lines = [
        CartLineSummary(
            id=item.pk,
            product_id=item.product_id,
            product_name=item.product.name,
            unit_price=item.product.price,
            quantity=item.quantity,
            line_total=calculate_line_total(item.product.price, item.quantity),
            is_available=item.is_available,
            available_stock=item.product.stock_quantity,
            image_url=item.product.image_url,
        )
        for item in items
    ]

    if not lines:
        return CartSummary()

    subtotal = sum((line.line_total for line in lines), ZERO)
    return CartSummary(lines=lines, totals=calculate_totals(subtotal))
