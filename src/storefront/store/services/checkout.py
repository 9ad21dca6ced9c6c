"""Checkout: turn a user's cart into an order.

The whole conversion is one transaction. Products are re-read under a row
lock (``SELECT ... FOR UPDATE``, in primary key order so two checkouts
never wait on each other in opposite orders) and every line is validated
before anything is written. Order creation, order lines, stock deduction
and cart clearing then commit or roll back together.
"""

import logging
import secrets

from django.db import IntegrityError, transaction
from django.db.models import F
from django.utils import timezone

from ..conf import get_setting
from ..exceptions import (
    EmptyCart,
    InsufficientStock,
    OrderNumberConflict,
    ProductUnavailable,
    ShippingAddressRequired,
)
from ..models import CartItem, Order, OrderItem, OrderStatus
from ..pricing import ZERO, calculate_line_total, calculate_totals
from ..transactions import retry_on_transient_failure
from ...catalog.models import Product

logger = logging.getLogger(__name__)


def generate_order_number() -> str:
    """Human-readable order number, e.g. ``ORD-20261019-4F9A2C``.

    Random suffix, so uniqueness is enforced by the database, not here.
    """
    prefix = get_setting("ORDER_NUMBER_PREFIX")
    date_part = timezone.now().strftime("%Y%m%d")
    return f"{prefix}-{date_part}-{secrets.token_hex(3).upper()}"


def _create_order(**fields) -> Order:
    """Insert an order under a freshly allocated unique order number.

    Each attempt runs in its own savepoint so a unique-constraint collision
    only discards that insert, not the surrounding checkout.

    Raises:
        OrderNumberConflict: every attempt collided
    """
    attempts = get_setting("ORDER_NUMBER_ATTEMPTS")
    for attempt in range(1, attempts + 1):
        order_number = generate_order_number()
        try:
            with transaction.atomic():
                return Order.objects.create(order_number=order_number, **fields)
        except IntegrityError:
            if not Order.objects.filter(order_number=order_number).exists():
                raise
            logger.warning(
                "Order number collision on %s (attempt %d/%d)",
                order_number, attempt, attempts,
            )
    raise OrderNumberConflict(attempts)


def _lock_products(product_ids) -> dict:
    products = (
        Product.objects.select_for_update()
        .filter(pk__in=product_ids)
        .order_by("pk")
    )
    return {product.pk: product for product in products}


def _validate_lines(lines, products) -> None:
    """Check every cart line against current product state.

    Raises on the first offending line; nothing has been written yet.
    """
    for line in lines:
        product = products.get(line.product_id)
        if product is None or not product.is_active:
            logger.info("Checkout rejected: product %s unavailable", line.product_id)
            raise ProductUnavailable(
                product_id=line.product_id,
                product_name=product.name if product else "",
            )
        if product.stock_quantity < line.quantity:
            logger.info(
                "Checkout rejected: product %s has %d in stock, %d requested",
                product.pk, product.stock_quantity, line.quantity,
            )
            raise InsufficientStock(
                product_id=product.pk,
                product_name=product.name,
                requested=line.quantity,
                available=product.stock_quantity,
            )


def _deduct_stock(product, quantity: int) -> None:
    """Decrement stock, guarded so it can never go below zero."""
    updated = Product.objects.filter(
        pk=product.pk,
        stock_quantity__gte=quantity,
    ).update(stock_quantity=F("stock_quantity") - quantity)

    if updated != 1:
        current = Product.objects.filter(pk=product.pk).values_list("stock_quantity", flat=True).first()
        raise InsufficientStock(
            product_id=product.pk,
            product_name=product.name,
            requested=quantity,
            available=current or 0,
        )


@retry_on_transient_failure
def checkout(
    user,
    shipping_address: str,
    shipping_city: str | None = None,
    payment_method: str | None = None,
    *,
    shipping_postal_code: str = "",
    shipping_phone: str = "",
    notes: str = "",
) -> Order:
    """Convert the user's cart into a pending order.

    Args:
        user: The authenticated customer; only their own cart is read
        shipping_address: Required, non-blank
        shipping_city: Falls back to DEFAULT_SHIPPING_CITY
        payment_method: Free-form label, falls back to DEFAULT_PAYMENT_METHOD
        shipping_postal_code: Optional
        shipping_phone: Optional
        notes: Optional customer note

    Returns:
        The created Order with its lines prefetched

    Raises:
        EmptyCart: the user has no cart lines
        ShippingAddressRequired: address missing or blank
        ProductUnavailable: a cart product is inactive or gone
        InsufficientStock: a cart line exceeds current stock
        OrderNumberConflict: no unique order number could be allocated
        StorageError: transient database failure persisted through retries
    """
    address = (shipping_address or "").strip()

    with transaction.atomic():
        lines = list(
            CartItem.objects.filter(user=user).order_by("product_id")
        )
        if not lines:
            raise EmptyCart()
        if not address:
            raise ShippingAddressRequired()

        products = _lock_products([line.product_id for line in lines])
        _validate_lines(lines, products)

        subtotal = ZERO
        order_items = []
        for line in lines:
            product = products[line.product_id]
            line_total = calculate_line_total(product.price, line.quantity)
            subtotal += line_total
            order_items.append(
                OrderItem(
                    product=product,
                    product_name=product.name,
                    product_sku=product.sku,
                    unit_price=product.price,
                    quantity=line.quantity,
                    line_total=line_total,
                )
            )

        totals = calculate_totals(subtotal)

        order = _create_order(
            user=user,
            status=OrderStatus.PENDING,
            subtotal=totals.subtotal,
            shipping_cost=totals.shipping_cost,
            tax_amount=totals.tax_amount,
            total_amount=totals.grand_total,
            shipping_address=address,
            shipping_city=(shipping_city or "").strip() or get_setting("DEFAULT_SHIPPING_CITY"),
            shipping_postal_code=(shipping_postal_code or "").strip(),
            shipping_phone=(shipping_phone or "").strip(),
            payment_method=(payment_method or "").strip() or get_setting("DEFAULT_PAYMENT_METHOD"),
            notes=(notes or "").strip(),
        )

        for item in order_items:
            item.order = order
        OrderItem.objects.bulk_create(order_items)

        for line in lines:
            _deduct_stock(products[line.product_id], line.quantity)

        CartItem.objects.filter(user=user).delete()

    logger.info(
        "Order %s created for user %s: %d lines, total %s",
        order.order_number, user.pk, len(order_items), order.total_amount,
    )

    return Order.objects.prefetch_related("items").get(pk=order.pk)
