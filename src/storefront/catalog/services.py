"""Catalog read services.

Product reads always go to the database. Nothing here caches stock: the
checkout engine depends on seeing the latest committed quantity.
"""

from .models import Product
from ..store.exceptions import ProductNotFound


def get_product(product_id) -> Product:
    """Fetch a product by id, active or not.

    Raises:
        ProductNotFound: No product with this id
    """
    try:
        return Product.objects.select_related("category").get(pk=product_id)
    except (Product.DoesNotExist, ValueError, TypeError):
        raise ProductNotFound(product_id)


def get_active_product(product_id) -> Product:
    """Fetch a product that can currently be sold.

    Raises:
        ProductNotFound: Product missing or inactive
    """
    product = get_product(product_id)
    if not product.is_active:
        raise ProductNotFound(product_id)
    return product


def list_active_products(category_slug: str | None = None):
    """Active products, optionally restricted to one category slug."""
    queryset = Product.objects.filter(is_active=True).select_related("category")
    if category_slug:
        queryset = queryset.filter(category__slug=category_slug)
    return queryset.order_by("name")
