# products/views/__init__.py

from .potential_product import PotentialProductViewSet
from .product import ProductViewSet
from .stock_movement import StockMovementViewSet

__all__ = [
    "ProductViewSet",
    "StockMovementViewSet",
    "PotentialProductViewSet",
]
