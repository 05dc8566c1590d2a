from .stock import adjust_stock, manual_adjust_stock

__all__ = [
    "adjust_stock",
    "manual_adjust_stock",
]
