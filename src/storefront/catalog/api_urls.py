"""Catalog API URL patterns."""

from django.urls import path

from . import api_views

app_name = "catalog"

urlpatterns = [
    path("", api_views.ProductListView.as_view(), name="product-list"),
    path("<int:product_id>/", api_views.ProductDetailView.as_view(), name="product-detail"),
]
