"""
PATH: products/models/__init__.py

Products models export surface.
"""

from .category import Category
from .product import Product
from .stock_movement import StockMovement
from .unit import UnitOfMeasure

__all__ = [
    "Category",
    "UnitOfMeasure",
    "Product",
    "StockMovement",
]
