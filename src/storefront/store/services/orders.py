"""Order lifecycle: lookups, cancellation and status transitions.

Stock is touched here only by cancellation, which returns each line's
quantity to its product. Every other transition changes status alone.
"""

import logging

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from ..exceptions import InvalidTransition, OrderNotFound
from ..models import Order, OrderStatus
from ..transactions import retry_on_transient_failure
from ...catalog.models import Product

logger = logging.getLogger(__name__)


ALLOWED_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: {OrderStatus.RETURNED},
    OrderStatus.CANCELLED: set(),
    OrderStatus.RETURNED: set(),
}


def can_transition(from_status: str, to_status: str) -> bool:
    """Check whether an order may move from one status to another."""
    return to_status in ALLOWED_TRANSITIONS.get(from_status, set())


def list_orders(user):
    """The user's orders, newest first, with lines prefetched."""
    return (
        Order.objects.filter(user=user)
        .prefetch_related("items")
        .order_by("-created_at", "-id")
    )


def get_order(user, order_id) -> Order:
    """Fetch one of the user's orders.

    Raises:
        OrderNotFound: No such order, or it belongs to someone else
    """
    try:
        return Order.objects.prefetch_related("items").get(pk=order_id, user=user)
    except (Order.DoesNotExist, ValueError, TypeError):
        raise OrderNotFound(order_id)


def _lock_order(order) -> Order:
    return Order.objects.select_for_update().get(pk=order.pk)


@retry_on_transient_failure
def cancel_order(order: Order) -> Order:
    """Cancel a pending or confirmed order and put its stock back.

    Lines whose product has since been deleted from the catalog are
    skipped; there is no stock left to restore for them.

    Raises:
        InvalidTransition: order is past the cancellable states
    """
    with transaction.atomic():
        locked = _lock_order(order)
        if not locked.can_be_cancelled:
            raise InvalidTransition(
                locked.status,
                OrderStatus.CANCELLED,
                message=f"Only pending or confirmed orders can be cancelled (order is {locked.status})",
            )

        items = sorted(
            (item for item in locked.items.all() if item.product_id is not None),
            key=lambda item: item.product_id,
        )
        for item in items:
            Product.objects.filter(pk=item.product_id).update(
                stock_quantity=F("stock_quantity") + item.quantity
            )

        from_status = locked.status
        locked.status = OrderStatus.CANCELLED
        locked.save(update_fields=["status", "updated_at"])

    logger.info(
        "Order %s cancelled (was %s), restored stock for %d lines",
        locked.order_number, from_status, len(items),
    )
    order.status = locked.status
    order.updated_at = locked.updated_at
    return order


@retry_on_transient_failure
def transition_order(order: Order, new_status: str) -> Order:
    """Move an order to a new status along the allowed lifecycle.

    A transition to cancelled goes through cancel_order so stock is
    restored.

    Raises:
        InvalidTransition: unknown status or transition not allowed
    """
    if new_status not in OrderStatus.values:
        raise InvalidTransition(order.status, new_status, message=f"Unknown order status: {new_status}")

    if new_status == OrderStatus.CANCELLED:
        return cancel_order(order)

    with transaction.atomic():
        locked = _lock_order(order)
        if not can_transition(locked.status, new_status):
            raise InvalidTransition(locked.status, new_status)

        from_status = locked.status
        locked.status = new_status
        locked.save(update_fields=["status", "updated_at"])

    logger.info("Order %s moved from %s to %s", locked.order_number, from_status, new_status)
    order.status = locked.status
    order.updated_at = locked.updated_at
    return order


@retry_on_transient_failure
def mark_order_paid(order: Order) -> Order:
    """Record that payment was received. Repeated calls keep the first timestamp.

    Raises:
        InvalidTransition: order is cancelled or returned
    """
    with transaction.atomic():
        locked = _lock_order(order)
        if locked.status in (OrderStatus.CANCELLED, OrderStatus.RETURNED):
            raise InvalidTransition(
                locked.status,
                "paid",
                message=f"Cannot record payment for a {locked.status} order",
            )

        if not locked.is_paid:
            locked.is_paid = True
            locked.paid_at = timezone.now()
            locked.save(update_fields=["is_paid", "paid_at", "updated_at"])
            logger.info("Order %s marked paid", locked.order_number)

    order.is_paid = locked.is_paid
    order.paid_at = locked.paid_at
    order.updated_at = locked.updated_at
    return order
