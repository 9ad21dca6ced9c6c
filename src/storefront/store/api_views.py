"""Cart and order JSON API.

Every endpoint requires ``Authorization: Bearer <token>`` and works on the
authenticated caller's own cart and orders. Status changes and payment
recording are staff only.

    GET    /api/cart/                        cart summary
    DELETE /api/cart/                        clear cart
    POST   /api/cart/add/                    {"product_id", "quantity"}
    PUT    /api/cart/<line_id>/              {"quantity"}
    DELETE /api/cart/<line_id>/
    GET    /api/order/                       caller's orders
    POST   /api/order/create-from-cart/      {"shipping_address", "shipping_city", "payment_method", ...}
    GET    /api/order/<order_id>/
    DELETE /api/order/<order_id>/            cancel
    PUT    /api/order/<order_id>/status/     {"status"}       (staff)
    POST   /api/order/<order_id>/paid/                        (staff)
"""

import logging

from django.http import JsonResponse
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt

from .exceptions import InvalidQuantity, NotFound, OrderNotFound, ProductNotFound, StoreError
from .models import Order
from .services import cart as cart_service
from .services import checkout as checkout_service
from .services import orders as order_service
from ..core.auth import require_auth_token, require_staff_token
from ..core.http import InvalidJSON, invalid_json_response, load_json

logger = logging.getLogger(__name__)


def _error_response(exc: StoreError):
    if not isinstance(exc, NotFound):
        logger.info("Request rejected: %s (%s)", exc.code, exc.message)
    return JsonResponse(exc.as_dict(), status=exc.status_code)


# -----------------
# Serialization
# -----------------


def cart_summary_payload(summary) -> dict:
    return {
        "items": [
            {
                "id": line.id,
                "product_id": line.product_id,
                "product_name": line.product_name,
                "product_price": str(line.unit_price),
                "product_image_url": line.image_url,
                "quantity": line.quantity,
                "total_price": str(line.line_total),
                "is_available": line.is_available,
                "available_stock": line.available_stock,
            }
            for line in summary.lines
        ],
        "total_items": summary.total_items,
        "subtotal": str(summary.totals.subtotal),
        "shipping_cost": str(summary.totals.shipping_cost),
        "tax_amount": str(summary.totals.tax_amount),
        "grand_total": str(summary.totals.grand_total),
    }


def order_payload(order: Order) -> dict:
    return {
        "id": order.pk,
        "order_number": order.order_number,
        "created_at": order.created_at.isoformat(),
        "status": order.status,
        "subtotal": str(order.subtotal),
        "shipping_cost": str(order.shipping_cost),
        "tax_amount": str(order.tax_amount),
        "total_amount": str(order.total_amount),
        "shipping_address": order.shipping_address,
        "shipping_city": order.shipping_city,
        "shipping_postal_code": order.shipping_postal_code,
        "shipping_phone": order.shipping_phone,
        "payment_method": order.payment_method,
        "is_paid": order.is_paid,
        "paid_at": order.paid_at.isoformat() if order.paid_at else None,
        "notes": order.notes,
        "total_items": order.total_items,
        "items": [
            {
                "id": item.pk,
                "product_id": item.product_id,
                "product_name": item.product_name,
                "product_sku": item.product_sku,
                "unit_price": str(item.unit_price),
                "quantity": item.quantity,
                "total_price": str(item.line_total),
            }
            for item in order.items.all()
        ],
        "can_be_cancelled": order.can_be_cancelled,
    }


def _summary_response(user):
    return JsonResponse(cart_summary_payload(cart_service.get_cart_summary(user)))


# -----------------
# Cart
# -----------------


@method_decorator(csrf_exempt, name="dispatch")
class CartView(View):
    """Cart summary and clearing.

    GET /api/cart/
    DELETE /api/cart/
    """

    @method_decorator(require_auth_token)
    def get(self, request):
        return _summary_response(request.user)

    @method_decorator(require_auth_token)
    def delete(self, request):
        removed = cart_service.clear_cart(request.user)
        return JsonResponse({"message": "Cart cleared successfully", "removed": removed})


@method_decorator(csrf_exempt, name="dispatch")
class CartAddView(View):
    """Add a product to the cart.

    POST /api/cart/add/
    {
        "product_id": 12,
        "quantity": 2
    }
    """

    @method_decorator(require_auth_token)
    def post(self, request):
        try:
            data = load_json(request)
        except InvalidJSON:
            return invalid_json_response()

        product_id = data.get("product_id")
        if product_id is None:
            return JsonResponse({"error": "validation_error", "message": "product_id required"}, status=400)

        try:
            cart_service.add_item(request.user, product_id, data.get("quantity", 1))
        except ProductNotFound as e:
            # Unknown or inactive product: 400 on add, like invalid quantity
            return JsonResponse(e.as_dict(), status=400)
        except StoreError as e:
            return _error_response(e)

        return _summary_response(request.user)


@method_decorator(csrf_exempt, name="dispatch")
class CartItemView(View):
    """Change or remove one cart line.

    PUT /api/cart/<line_id>/   {"quantity": 3}
    DELETE /api/cart/<line_id>/
    """

    @method_decorator(require_auth_token)
    def put(self, request, line_id):
        try:
            data = load_json(request)
        except InvalidJSON:
            return invalid_json_response()

        if "quantity" not in data:
            return _error_response(InvalidQuantity("quantity required"))

        try:
            cart_service.update_quantity(request.user, line_id, data["quantity"])
        except StoreError as e:
            return _error_response(e)

        return _summary_response(request.user)

    @method_decorator(require_auth_token)
    def delete(self, request, line_id):
        if not cart_service.remove_item(request.user, line_id):
            return JsonResponse(
                {"error": "not_found", "message": "Cart item not found", "line_id": line_id},
                status=404,
            )
        return _summary_response(request.user)


# -----------------
# Orders
# -----------------


@method_decorator(csrf_exempt, name="dispatch")
class OrderListView(View):
    """GET /api/order/"""

    @method_decorator(require_auth_token)
    def get(self, request):
        orders = order_service.list_orders(request.user)
        return JsonResponse({"orders": [order_payload(o) for o in orders]})


@method_decorator(csrf_exempt, name="dispatch")
class CreateOrderFromCartView(View):
    """Check out the caller's cart.

    POST /api/order/create-from-cart/
    {
        "shipping_address": "Street 1",
        "shipping_city": "Istanbul",
        "payment_method": "Credit Card",
        "shipping_postal_code": "34000",
        "shipping_phone": "+90 555 000 0000",
        "notes": "Leave at the door"
    }
    """

    @method_decorator(require_auth_token)
    def post(self, request):
        try:
            data = load_json(request)
        except InvalidJSON:
            return invalid_json_response()

        try:
            order = checkout_service.checkout(
                request.user,
                shipping_address=str(data.get("shipping_address") or ""),
                shipping_city=str(data.get("shipping_city") or ""),
                payment_method=str(data.get("payment_method") or ""),
                shipping_postal_code=str(data.get("shipping_postal_code") or ""),
                shipping_phone=str(data.get("shipping_phone") or ""),
                notes=str(data.get("notes") or ""),
            )
        except StoreError as e:
            return _error_response(e)

        return JsonResponse({
            "message": "Order created successfully",
            "order_id": order.pk,
            "order_number": order.order_number,
            "total_amount": str(order.total_amount),
        })


@method_decorator(csrf_exempt, name="dispatch")
class OrderDetailView(View):
    """Order detail and cancellation.

    GET /api/order/<order_id>/
    DELETE /api/order/<order_id>/
    """

    @method_decorator(require_auth_token)
    def get(self, request, order_id):
        try:
            order = order_service.get_order(request.user, order_id)
        except OrderNotFound as e:
            return _error_response(e)
        return JsonResponse(order_payload(order))

    @method_decorator(require_auth_token)
    def delete(self, request, order_id):
        try:
            order = order_service.get_order(request.user, order_id)
            order_service.cancel_order(order)
        except StoreError as e:
            return _error_response(e)

        return JsonResponse({
            "message": "Order cancelled successfully",
            "order_id": order.pk,
        })


def _get_any_order(order_id) -> Order:
    try:
        return Order.objects.prefetch_related("items").get(pk=order_id)
    except Order.DoesNotExist:
        raise OrderNotFound(order_id)


@method_decorator(csrf_exempt, name="dispatch")
class OrderStatusView(View):
    """Administrative status change.

    PUT /api/order/<order_id>/status/
    {
        "status": "shipped"
    }
    """

    @method_decorator(require_staff_token)
    def put(self, request, order_id):
        try:
            data = load_json(request)
        except InvalidJSON:
            return invalid_json_response()

        new_status = str(data.get("status", "")).strip().lower()

        try:
            order = _get_any_order(order_id)
            from_status = order.status
            order_service.transition_order(order, new_status)
        except StoreError as e:
            return _error_response(e)

        return JsonResponse({
            "message": "Order status updated successfully",
            "order_id": order.pk,
            "previous_status": from_status,
            "new_status": order.status,
        })


@method_decorator(csrf_exempt, name="dispatch")
class OrderPaidView(View):
    """POST /api/order/<order_id>/paid/"""

    @method_decorator(require_staff_token)
    def post(self, request, order_id):
        try:
            order = _get_any_order(order_id)
            order_service.mark_order_paid(order)
        except StoreError as e:
            return _error_response(e)

        return JsonResponse({
            "order_id": order.pk,
            "is_paid": order.is_paid,
            "paid_at": order.paid_at.isoformat() if order.paid_at else None,
        })
