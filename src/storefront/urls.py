"""URL configuration for Storefront project."""

from django.contrib import admin
from django.urls import include, path

from storefront.core.views import health_check

urlpatterns = [
    # Health check
    path("health/", health_check, name="health_check"),

    # Django admin
    path("admin/", admin.site.urls),

    # Authentication API
    path("api/auth/", include("storefront.core.api_urls", namespace="auth")),

    # Catalog API
    path("api/products/", include("storefront.catalog.api_urls", namespace="catalog")),

    # Cart and order API
    path("api/", include("storefront.store.api_urls", namespace="store")),
]
