# invoicing/services/invoice_store.py

"""
======================================================
PATH: invoicing/services/invoice_store.py
======================================================
INVOICE HEADER / LINE STORE

Durable storage primitives for one internal invoice. No stock math here;
the reconciliation engine decides WHAT to write, this module only writes.

Rules:
- load_for_update takes an exclusive row lock on the header
  (SELECT ... FOR UPDATE) so two updates of the same invoice serialize.
  Callers must already be inside transaction.atomic.
- Header updates are typed partial updates: only fields present in
  InvoiceHeaderChanges are written, via save(update_fields=...).
"""

from __future__ import annotations

from django.core.exceptions import ValidationError
from django.db import transaction

from invoicing.models import InternalInvoice, InvoiceLine
from invoicing.services.exceptions import InvoiceNotFound
from invoicing.services.types import InvoiceHeaderChanges, InvoiceHeaderData, LinePlan, LineSnapshot

# InvoiceHeaderChanges field -> model attribute
_HEADER_FIELD_MAP = {
    "code": "code",
    "movement_type_id": "movement_type_id",
    "concept": "concept",
    "responsible_user_id": "responsible_user_id",
    "movement_date": "movement_date",
    "total": "total",
    "notes": "notes",
}


def _snapshot(line: InvoiceLine) -> LineSnapshot:
    return LineSnapshot(
        line_id=line.id,
        product_id=line.product_id,
        quantity=line.quantity,
        unit_price=line.unit_price,
    )


def load_for_update(invoice_id) -> tuple[InternalInvoice, list[LineSnapshot]]:
    try:
        invoice = InternalInvoice.objects.select_for_update().get(pk=invoice_id)
    except (InternalInvoice.DoesNotExist, ValidationError, ValueError) as exc:
        raise InvoiceNotFound(invoice_id) from exc

    lines = [
        _snapshot(line)
        for line in InvoiceLine.objects.filter(invoice_id=invoice.pk).order_by("created_at", "id")
    ]
    return invoice, lines


def insert_header(header: InvoiceHeaderData) -> InternalInvoice:
    return InternalInvoice.objects.create(
        code=header.code,
        movement_type_id=header.movement_type_id,
        concept=header.concept,
        responsible_user_id=header.responsible_user_id,
        movement_date=header.movement_date,
        total=header.total,
        notes=header.notes or "",
        state=header.state,
    )


def update_header_fields(invoice: InternalInvoice, changes: InvoiceHeaderChanges, state: str | None = None) -> InternalInvoice:
    update_fields = []

    for name, value in changes.present().items():
        setattr(invoice, _HEADER_FIELD_MAP[name], value)
        update_fields.append(_HEADER_FIELD_MAP[name])

    if state is not None and state != invoice.state:
        invoice.state = state
        update_fields.append("state")

    if not update_fields:
        return invoice

    update_fields.append("updated_at")
    invoice.save(update_fields=update_fields)
    return invoice


def replace_lines(invoice: InternalInvoice, plan: LinePlan) -> None:
    if plan.to_delete:
        InvoiceLine.objects.filter(invoice_id=invoice.pk, id__in=list(plan.to_delete)).delete()

    for upd in plan.to_update:
        InvoiceLine.objects.filter(invoice_id=invoice.pk, id=upd.line_id).update(
            quantity=upd.quantity,
            unit_price=upd.unit_price,
        )

    if plan.to_insert:
        InvoiceLine.objects.bulk_create(
            [
                InvoiceLine(
                    invoice=invoice,
                    product_id=line.product_id,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                )
                for line in plan.to_insert
            ]
        )


@transaction.atomic
def delete_header_cascade(invoice_id) -> InternalInvoice:
    """Remove header + lines. Stock is NOT reverted."""
    invoice, _ = load_for_update(invoice_id)
    invoice.delete()
    return invoice
