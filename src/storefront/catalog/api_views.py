"""Read-only catalog API.

GET /api/products/
GET /api/products/<product_id>/
"""

from django.http import JsonResponse
from django.views import View

from . import services
from ..store.exceptions import ProductNotFound


def product_payload(product):
    """Serialize a product for the API."""
    return {
        "id": product.pk,
        "name": product.name,
        "description": product.description,
        "price": str(product.price),
        "stock_quantity": product.stock_quantity,
        "in_stock": product.in_stock,
        "category_id": product.category_id,
        "category_name": product.category.name,
        "image_url": product.image_url,
        "sku": product.sku,
        "is_active": product.is_active,
    }


class ProductListView(View):
    """List active products, optionally filtered by ?category=<slug>."""

    def get(self, request):
        products = services.list_active_products(request.GET.get("category"))
        return JsonResponse({"products": [product_payload(p) for p in products]})


class ProductDetailView(View):

    def get(self, request, product_id):
        try:
            product = services.get_active_product(product_id)
        except ProductNotFound as e:
            return JsonResponse(e.as_dict(), status=e.status_code)
        return JsonResponse(product_payload(product))
