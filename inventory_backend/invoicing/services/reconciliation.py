# invoicing/services/reconciliation.py

"""
======================================================
PATH: invoicing/services/reconciliation.py
======================================================
INVENTORY RECONCILIATION ENGINE

Keeps product stock consistent with internal invoices.

Invariant:
    stock(P) == opening(P) + sum(line.quantity for lines of P on CONFIRMED invoices)
DRAFT and VOIDED invoices contribute nothing.

Canonical flow (reconcile):
1) Lock invoice header, read current lines
2) Plan: diff old (state, lines) against new (state, lines)
3) Apply stock adjustments (ascending product id)
4) Persist header fields + state
5) Persist line inserts / updates / deletes
All inside one transaction.atomic block: any error (InsufficientStock
included) rolls back every stock and line write.

Planning rules (plan_reconciliation):
- Lines absent (None): the line set is unchanged.
    into CONFIRMED      -> +qty for every current line (with its price)
    out of CONFIRMED    -> -qty for every current line
    anything else       -> no stock effect
- Lines present: keyed by product (last occurrence wins).
    removed  -> delete row; -old_qty if old state was CONFIRMED
    added    -> insert row; +new_qty (new price) if new state is CONFIRMED
    common   -> update row when qty/price changed, and:
        CONFIRMED -> CONFIRMED : +(new_qty - old_qty), new price
        other     -> CONFIRMED : +new_qty, new price
        CONFIRMED -> other     : -old_qty
        other     -> other     : nothing
- Reversals never touch the reference price.
- Zero deltas are dropped unless they carry a changed price.
"""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Iterable, Optional

from django.db import transaction

from invoicing.models import InternalInvoice
from invoicing.services.exceptions import InvalidInvoiceLine
from invoicing.services.invoice_store import load_for_update, replace_lines, update_header_fields
from invoicing.services.types import (
    EMPTY_CHANGES,
    InvoiceHeaderChanges,
    LineInput,
    LinePlan,
    LineSnapshot,
    LineUpdate,
    ReconcileResult,
    ReconciliationPlan,
    StockAdjustment,
)
from products.services.stock import adjust_stock

logger = logging.getLogger("invoicing")

CONFIRMED = InternalInvoice.STATE_CONFIRMED
DRAFT = InternalInvoice.STATE_DRAFT

QTY_PLACES = Decimal("0.001")
TWOPLACES = Decimal("0.01")


def _qty(v) -> Decimal:
    return Decimal(str(v)).quantize(QTY_PLACES)


def _money(v) -> Decimal:
    return Decimal(str(v)).quantize(TWOPLACES)


def _key(product_id) -> str:
    return str(product_id)


def _field(line, name):
    if isinstance(line, dict):
        return line.get(name)
    return getattr(line, name, None)


# ============================================================
# INPUT GUARD
# ============================================================
def validate_lines(lines: Iterable) -> list[LineInput]:
    """
    Normalize + guard requested lines.

    Request validation already enforces these rules; the engine checks
    again because stock correctness depends on them.
    """
    out: list[LineInput] = []

    for idx, line in enumerate(lines):
        product_id = _field(line, "product_id")
        if product_id in (None, ""):
            raise InvalidInvoiceLine(f"Line {idx}: product_id is required")

        raw_qty = _field(line, "quantity")
        raw_price = _field(line, "unit_price")

        try:
            quantity = _qty(raw_qty)
            unit_price = _money(raw_price if raw_price is not None else "0")
        except (InvalidOperation, TypeError, ValueError):
            raise InvalidInvoiceLine(f"Line {idx}: quantity and unit_price must be decimal numbers")

        if quantity <= 0:
            raise InvalidInvoiceLine(f"Line {idx}: quantity must be > 0")
        if unit_price < 0:
            raise InvalidInvoiceLine(f"Line {idx}: unit_price cannot be negative")

        out.append(LineInput(product_id=product_id, quantity=quantity, unit_price=unit_price))

    return out


def dedupe_by_product(lines: Iterable[LineInput]) -> dict[str, LineInput]:
    """One line per product; a repeated product keeps its LAST occurrence."""
    by_product: dict[str, LineInput] = {}
    for line in lines:
        by_product[_key(line.product_id)] = line
    return by_product


# ============================================================
# PLANNING (PURE)
# ============================================================
def _ordered(adjustments: dict[str, StockAdjustment]) -> tuple:
    # Consistent lock order across concurrent invoices touching the same products.
    return tuple(adjustments[k] for k in sorted(adjustments))


def plan_reconciliation(
    *,
    old_state: str,
    old_lines: Iterable[LineSnapshot],
    new_state: Optional[str] = None,
    new_lines: Optional[Iterable[LineInput]] = None,
) -> ReconciliationPlan:
    new_state = new_state or old_state
    was_confirmed = old_state == CONFIRMED
    now_confirmed = new_state == CONFIRMED

    old_lines = list(old_lines)
    adjustments: dict[str, StockAdjustment] = {}

    # ------------------------------
    # Lines unchanged: state decides
    # ------------------------------
    if new_lines is None:
        if was_confirmed == now_confirmed:
            return ReconciliationPlan(adjustments=(), lines=None)

        for old in old_lines:
            if now_confirmed:
                adjustments[_key(old.product_id)] = StockAdjustment(
                    product_id=old.product_id,
                    delta=_qty(old.quantity),
                    reference_price=old.unit_price,
                )
            else:
                adjustments[_key(old.product_id)] = StockAdjustment(
                    product_id=old.product_id,
                    delta=-_qty(old.quantity),
                )

        return ReconciliationPlan(adjustments=_ordered(adjustments), lines=None)

    # ------------------------------
    # Lines present: diff by product
    # ------------------------------
    old_map = {_key(line.product_id): line for line in old_lines}
    new_map = dedupe_by_product(new_lines)

    to_delete = []
    to_insert = []
    to_update = []

    # Removed
    for key, old in old_map.items():
        if key in new_map:
            continue
        to_delete.append(old.line_id)
        if was_confirmed:
            adjustments[key] = StockAdjustment(product_id=old.product_id, delta=-_qty(old.quantity))

    for key, new in new_map.items():
        old = old_map.get(key)

        # Added
        if old is None:
            to_insert.append(new)
            if now_confirmed:
                adjustments[key] = StockAdjustment(
                    product_id=new.product_id,
                    delta=_qty(new.quantity),
                    reference_price=new.unit_price,
                )
            continue

        # Common
        old_qty = _qty(old.quantity)
        new_qty = _qty(new.quantity)
        price_changed = _money(old.unit_price) != _money(new.unit_price)

        if old_qty != new_qty or price_changed:
            to_update.append(LineUpdate(line_id=old.line_id, quantity=new_qty, unit_price=new.unit_price))

        if was_confirmed and now_confirmed:
            delta = new_qty - old_qty
            if delta != 0 or price_changed:
                adjustments[key] = StockAdjustment(
                    product_id=new.product_id,
                    delta=delta,
                    reference_price=new.unit_price,
                )
        elif now_confirmed:
            adjustments[key] = StockAdjustment(
                product_id=new.product_id,
                delta=new_qty,
                reference_price=new.unit_price,
            )
        elif was_confirmed:
            adjustments[key] = StockAdjustment(product_id=old.product_id, delta=-old_qty)

    return ReconciliationPlan(
        adjustments=_ordered(adjustments),
        lines=LinePlan(
            to_delete=tuple(to_delete),
            to_insert=tuple(to_insert),
            to_update=tuple(to_update),
        ),
    )


# ============================================================
# APPLY
# ============================================================
def apply_adjustments(plan: ReconciliationPlan) -> None:
    for adj in plan.adjustments:
        adjust_stock(
            product_id=adj.product_id,
            delta=adj.delta,
            reference_price=adj.reference_price,
        )


def apply_plan(invoice: InternalInvoice, plan: ReconciliationPlan) -> None:
    """Stock first, then rows. Caller owns the transaction."""
    apply_adjustments(plan)
    if plan.lines is not None and not plan.lines.is_empty:
        replace_lines(invoice, plan.lines)


@transaction.atomic
def reconcile(
    invoice_id,
    *,
    header_changes: Optional[InvoiceHeaderChanges] = None,
    new_state: Optional[str] = None,
    new_lines: Optional[Iterable] = None,
) -> ReconcileResult:
    """
    Move one invoice from its persisted (state, lines) to the requested ones.

    Raises InvoiceNotFound, InsufficientStock, InvalidInvoiceLine.
    Nothing is committed when it raises.
    """
    invoice, old_lines = load_for_update(invoice_id)
    old_state = invoice.state
    target_state = new_state or old_state

    requested = validate_lines(new_lines) if new_lines is not None else None

    plan = plan_reconciliation(
        old_state=old_state,
        old_lines=old_lines,
        new_state=target_state,
        new_lines=requested,
    )

    apply_adjustments(plan)

    update_header_fields(invoice, header_changes or EMPTY_CHANGES, state=target_state)

    if plan.lines is not None and not plan.lines.is_empty:
        replace_lines(invoice, plan.lines)

    line_count = len(dedupe_by_product(requested)) if requested is not None else len(old_lines)

    if old_state != target_state or (target_state == CONFIRMED and requested is not None):
        logger.info(
            "Invoice reconciled",
            extra={
                "invoice_id": str(invoice.pk),
                "old_state": old_state,
                "new_state": target_state,
                "adjustments": len(plan.adjustments),
                "line_count": line_count,
            },
        )

    return ReconcileResult(invoice=invoice, line_count=line_count)


@transaction.atomic
def reconcile_new_invoice(invoice: InternalInvoice, lines: Iterable) -> ReconcileResult:
    """
    Creation path: a brand-new invoice behaves like DRAFT with no lines
    moving to (invoice.state, lines). Creating as CONFIRMED applies +qty
    for every line immediately.
    """
    requested = validate_lines(lines)

    plan = plan_reconciliation(
        old_state=DRAFT,
        old_lines=[],
        new_state=invoice.state,
        new_lines=requested,
    )
    apply_plan(invoice, plan)

    line_count = len(plan.lines.to_insert) if plan.lines is not None else 0

    logger.info(
        "Invoice created",
        extra={
            "invoice_id": str(invoice.pk),
            "state": invoice.state,
            "adjustments": len(plan.adjustments),
            "line_count": line_count,
        },
    )

    return ReconcileResult(invoice=invoice, line_count=line_count)
