from .invoice_service import (
    change_state,
    confirm_invoice,
    create_invoice,
    delete_invoice,
    invoice_stats,
    update_invoice,
    void_invoice,
)
from .reconciliation import plan_reconciliation, reconcile, reconcile_new_invoice

__all__ = [
    "create_invoice",
    "update_invoice",
    "change_state",
    "confirm_invoice",
    "void_invoice",
    "delete_invoice",
    "invoice_stats",
    "plan_reconciliation",
    "reconcile",
    "reconcile_new_invoice",
]
