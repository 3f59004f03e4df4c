from .potential_product import (
    ConvertToProductInputSerializer,
    PotentialProductInputSerializer,
    PotentialProductSerializer,
    PotentialProductStatusInputSerializer,
)
from .product import ProductSerializer
from .stock_movement import StockAdjustmentInputSerializer, StockMovementSerializer

__all__ = [
    "ProductSerializer",
    "StockMovementSerializer",
    "StockAdjustmentInputSerializer",
    "PotentialProductSerializer",
    "PotentialProductInputSerializer",
    "PotentialProductStatusInputSerializer",
    "ConvertToProductInputSerializer",
]
