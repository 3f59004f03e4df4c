"""
PATH: products/models/__init__.py

Products models export surface.
"""

from .potential_product import PotentialProduct
from .product import Product
from .references import (
    ManualRef,
    OrderRef,
    ReferenceType,
    ShipmentRef,
    StockReference,
)
from .stock_movement import StockMovement

__all__ = [
    "Product",
    "PotentialProduct",
    "StockMovement",
    "ReferenceType",
    "StockReference",
    "OrderRef",
    "ShipmentRef",
    "ManualRef",
]
