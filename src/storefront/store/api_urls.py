"""Cart and order API URL patterns."""

from django.urls import path

from . import api_views

app_name = "store"

urlpatterns = [
    # Cart
    path("cart/", api_views.CartView.as_view(), name="cart"),
    path("cart/add/", api_views.CartAddView.as_view(), name="cart-add"),
    path("cart/<int:line_id>/", api_views.CartItemView.as_view(), name="cart-item"),

    # Orders
    path("order/", api_views.OrderListView.as_view(), name="order-list"),
    path(
        "order/create-from-cart/",
        api_views.CreateOrderFromCartView.as_view(),
        name="order-create-from-cart",
    ),
    path("order/<int:order_id>/", api_views.OrderDetailView.as_view(), name="order-detail"),
    path("order/<int:order_id>/status/", api_views.OrderStatusView.as_view(), name="order-status"),
    path("order/<int:order_id>/paid/", api_views.OrderPaidView.as_view(), name="order-paid"),
]
