# products/views/__init__.py

from .category import CategoryViewSet, UnitOfMeasureViewSet
from .product import ProductViewSet

__all__ = [
    "CategoryViewSet",
    "UnitOfMeasureViewSet",
    "ProductViewSet",
]
