# invoicing/services/types.py

"""
Value types shared by the invoice store, the reconciliation engine and
the invoice service. Immutable; no ORM objects except ReconcileResult.invoice.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass, fields
from decimal import Decimal
from typing import Any, Optional


# ---------------- LINES ----------------
@dataclass(frozen=True)
class LineInput:
    """Requested line: what the caller wants the invoice to contain."""

    product_id: Any
    quantity: Decimal
    unit_price: Decimal


@dataclass(frozen=True)
class LineSnapshot:
    """Persisted line as read under the invoice lock."""

    line_id: Any
    product_id: Any
    quantity: Decimal
    unit_price: Decimal


@dataclass(frozen=True)
class LineUpdate:
    line_id: Any
    quantity: Decimal
    unit_price: Decimal


@dataclass(frozen=True)
class StockAdjustment:
    product_id: Any
    delta: Decimal
    reference_price: Optional[Decimal] = None


@dataclass(frozen=True)
class LinePlan:
    to_delete: tuple = ()
    to_insert: tuple = ()
    to_update: tuple = ()

    @property
    def is_empty(self) -> bool:
        return not (self.to_delete or self.to_insert or self.to_update)


@dataclass(frozen=True)
class ReconciliationPlan:
    """
    adjustments: stock deltas, one per product at most.
    lines: row mutations, or None when the line set is unchanged.
    """

    adjustments: tuple = ()
    lines: Optional[LinePlan] = None


@dataclass(frozen=True)
class ReconcileResult:
    invoice: Any
    line_count: int


# ---------------- HEADER ----------------
@dataclass(frozen=True)
class InvoiceHeaderData:
    code: str
    movement_type_id: Any
    concept: str
    responsible_user_id: Any
    movement_date: datetime.date
    total: Decimal = Decimal("0.00")
    notes: str = ""
    state: str = "DRAFT"


@dataclass(frozen=True)
class InvoiceHeaderChanges:
    """
    Typed partial update. A field left at None is not written.
    State is not part of it; state changes travel separately so the
    engine can see them.
    """

    code: Optional[str] = None
    movement_type_id: Any = None
    concept: Optional[str] = None
    responsible_user_id: Any = None
    movement_date: Optional[datetime.date] = None
    total: Optional[Decimal] = None
    notes: Optional[str] = None

    def present(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None}

    @property
    def is_empty(self) -> bool:
        return not self.present()


EMPTY_CHANGES = InvoiceHeaderChanges()

__all__ = [
    "LineInput",
    "LineSnapshot",
    "LineUpdate",
    "StockAdjustment",
    "LinePlan",
    "ReconciliationPlan",
    "ReconcileResult",
    "InvoiceHeaderData",
    "InvoiceHeaderChanges",
    "EMPTY_CHANGES",
]
