# products/serializers/__init__.py

from .category import CategorySerializer, UnitOfMeasureSerializer
from .product import ProductSerializer, StockAdjustmentSerializer

__all__ = [
    "CategorySerializer",
    "UnitOfMeasureSerializer",
    "ProductSerializer",
    "StockAdjustmentSerializer",
]
