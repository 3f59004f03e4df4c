# products/urls.py

"""
PRODUCTS URLS

Registers under /api/inventory/:
    products/
    products/{id}/stock-movements/
    products/{id}/adjust-stock/
    products/low-stock/ | out-of-stock/ | inventory-value/
    stock-movements/
    potential-products/
    potential-products/{id}/status/ | convert/
    potential-products/summary/
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from products.views import PotentialProductViewSet, ProductViewSet, StockMovementViewSet

router = DefaultRouter()

router.register(r"products", ProductViewSet, basename="products")
router.register(r"stock-movements", StockMovementViewSet, basename="stock-movements")
router.register(r"potential-products", PotentialProductViewSet, basename="potential-products")

urlpatterns = [
    path("", include(router.urls)),
]
