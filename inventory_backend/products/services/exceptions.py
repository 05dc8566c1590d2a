# products/services/exceptions.py

"""
STOCK SERVICE ERRORS

Domain errors raised by products.services.stock.
Views map them to HTTP; the services never know about HTTP.
"""

from decimal import Decimal


class StockError(Exception):
    """Base exception for all stock service failures."""


class ProductNotFound(StockError):
    """Raised when an adjustment targets a product that does not exist."""

    def __init__(self, product_id):
        self.product_id = product_id
        super().__init__(f"Product {product_id} does not exist")


class InsufficientStock(StockError):
    """Raised when a negative adjustment would drive stock below zero."""

    def __init__(self, *, product_id, product_name: str, current_stock: Decimal, attempted_delta: Decimal):
        self.product_id = product_id
        self.product_name = product_name
        self.current_stock = current_stock
        self.attempted_delta = attempted_delta
        super().__init__(
            f"Insufficient stock for '{product_name}': "
            f"current {current_stock}, attempted change {attempted_delta}"
        )

    def as_dict(self) -> dict:
        return {
            "product_id": str(self.product_id),
            "product_name": self.product_name,
            "current_stock": str(self.current_stock),
            "attempted_delta": str(self.attempted_delta),
        }


class InvalidAdjustment(StockError):
    """Raised when a manual adjustment is malformed (zero or non-decimal delta)."""
