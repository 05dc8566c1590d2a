# invoicing/services/invoice_service.py

"""
======================================================
PATH: invoicing/services/invoice_service.py
======================================================
INVOICE SERVICE (ORCHESTRATOR)

Translates create / update / state-change / delete requests into calls to
the reconciliation engine, after resolving references:
- movement type exists
- responsible user exists
- every product on the lines exists
- code is not used by another invoice
- lifecycle transition is allowed (see lifecycle.py)

Stock math lives ONLY in reconciliation.py.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Callable, Iterable, Optional

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.db.models import Count, Q, Sum

from invoicing.models import InternalInvoice, InvoiceLine, MovementType
from invoicing.services import lifecycle
from invoicing.services.exceptions import (
    DuplicateInvoiceCode,
    InvalidInvoiceHeader,
    InvalidInvoiceLine,
    InvalidInvoiceTransition,
    InvalidReference,
    InvoiceNotFound,
)
from invoicing.services.invoice_store import delete_header_cascade, insert_header
from invoicing.services.reconciliation import reconcile, reconcile_new_invoice, validate_lines
from invoicing.services.types import InvoiceHeaderChanges, InvoiceHeaderData, ReconcileResult
from products.models import Product

logger = logging.getLogger("invoicing")

User = get_user_model()

TWOPLACES = Decimal("0.01")


# ============================================================
# REFERENCE CHECKS
# ============================================================
def _normalize_code(code: Optional[str]) -> Optional[str]:
    if code is None:
        return None
    code = code.strip()
    if not code:
        raise InvalidInvoiceHeader("code cannot be blank")
    if len(code) > InternalInvoice.CODE_MAX_LENGTH:
        raise InvalidInvoiceHeader(f"code cannot exceed {InternalInvoice.CODE_MAX_LENGTH} characters")
    return code


def _check_code_free(code: str, *, exclude_id=None) -> None:
    qs = InternalInvoice.objects.filter(code=code)
    if exclude_id is not None:
        qs = qs.exclude(pk=exclude_id)
    if qs.exists():
        raise DuplicateInvoiceCode(code)


def _check_movement_type(movement_type_id) -> None:
    if not MovementType.objects.filter(pk=movement_type_id).exists():
        raise InvalidReference("movement_type", movement_type_id)


def _check_responsible_user(user_id) -> None:
    if not User.objects.filter(pk=user_id).exists():
        raise InvalidReference("responsible_user", user_id)


def _check_products(lines, *, already_listed=()) -> None:
    """
    Products on new lines must exist and be active. Products the invoice
    already carries may have been deactivated since and are still accepted.
    """
    listed = {str(pk) for pk in already_listed}
    wanted = {str(line.product_id) for line in lines} - listed
    if not wanted:
        return

    try:
        found = {
            str(pk)
            for pk in Product.objects.filter(pk__in=wanted, is_active=True).values_list("pk", flat=True)
        }
    except ValidationError as exc:
        raise InvalidReference("product", sorted(wanted)[0]) from exc
    missing = sorted(wanted - found)
    if missing:
        raise InvalidReference("product", missing[0])


def _check_changes(invoice_id, changes: InvoiceHeaderChanges) -> InvoiceHeaderChanges:
    if changes.code is not None:
        code = _normalize_code(changes.code)
        _check_code_free(code, exclude_id=invoice_id)
        changes = InvoiceHeaderChanges(**{**changes.present(), "code": code})

    if changes.concept is not None and not changes.concept.strip():
        raise InvalidInvoiceHeader("concept cannot be blank")

    if changes.movement_type_id is not None:
        _check_movement_type(changes.movement_type_id)

    if changes.responsible_user_id is not None:
        _check_responsible_user(changes.responsible_user_id)

    return changes


# ============================================================
# CREATE
# ============================================================
@transaction.atomic
def create_invoice(*, header: InvoiceHeaderData, lines: Iterable) -> ReconcileResult:
    """
    Insert header + lines and apply stock when created CONFIRMED.
    """
    if header.state not in lifecycle.INITIAL_STATES:
        raise InvalidInvoiceTransition("NEW", header.state)

    requested = validate_lines(lines)
    if not requested:
        raise InvalidInvoiceLine("An invoice needs at least one line")

    code = _normalize_code(header.code)
    if not (header.concept or "").strip():
        raise InvalidInvoiceHeader("concept cannot be blank")

    _check_code_free(code)
    _check_movement_type(header.movement_type_id)
    _check_responsible_user(header.responsible_user_id)
    _check_products(requested)

    try:
        with transaction.atomic():
            invoice = insert_header(
                InvoiceHeaderData(
                    code=code,
                    movement_type_id=header.movement_type_id,
                    concept=header.concept,
                    responsible_user_id=header.responsible_user_id,
                    movement_date=header.movement_date,
                    total=header.total,
                    notes=header.notes,
                    state=header.state,
                )
            )
    except (IntegrityError, ValidationError) as exc:
        # Lost a race on the unique code between the check and the insert.
        if InternalInvoice.objects.filter(code=code).exists():
            raise DuplicateInvoiceCode(code) from exc
        raise

    return reconcile_new_invoice(invoice, requested)


# ============================================================
# UPDATE
# ============================================================
@transaction.atomic
def update_invoice(
    invoice_id,
    *,
    changes: Optional[InvoiceHeaderChanges] = None,
    new_state: Optional[str] = None,
    new_lines: Optional[Iterable] = None,
    check_transition: Optional[Callable[[str, str], None]] = None,
) -> ReconcileResult:
    """
    check_transition(from_state, to_state) runs under the invoice lock, so it
    sees the state the engine will diff against. It raises to refuse.
    """
    changes = changes or InvoiceHeaderChanges()

    # Lock first: the transition check must see the state reconcile will diff against.
    try:
        current = InternalInvoice.objects.select_for_update().only("id", "state").get(pk=invoice_id)
    except (InternalInvoice.DoesNotExist, ValidationError, ValueError) as exc:
        raise InvoiceNotFound(invoice_id) from exc

    target_state = new_state or current.state
    if check_transition is not None:
        check_transition(current.state, target_state)
    lifecycle.validate_transition(from_state=current.state, to_state=target_state)

    changes = _check_changes(current.pk, changes)

    requested = None
    if new_lines is not None:
        requested = validate_lines(new_lines)
        _check_products(
            requested,
            already_listed=InvoiceLine.objects.filter(invoice_id=current.pk).values_list("product_id", flat=True),
        )

    try:
        with transaction.atomic():
            return reconcile(
                current.pk,
                header_changes=changes,
                new_state=target_state,
                new_lines=requested,
            )
    except IntegrityError as exc:
        if changes.code is not None and InternalInvoice.objects.filter(code=changes.code).exclude(pk=current.pk).exists():
            raise DuplicateInvoiceCode(changes.code) from exc
        raise


def change_state(invoice_id, new_state: str, *, check_transition=None) -> ReconcileResult:
    return update_invoice(invoice_id, new_state=new_state, check_transition=check_transition)


def confirm_invoice(invoice_id) -> ReconcileResult:
    return change_state(invoice_id, InternalInvoice.STATE_CONFIRMED)


def void_invoice(invoice_id) -> ReconcileResult:
    return change_state(invoice_id, InternalInvoice.STATE_VOIDED)


# ============================================================
# DELETE
# ============================================================
def delete_invoice(invoice_id) -> None:
    """
    Delete header + lines.

    Stock is NOT reverted, even for CONFIRMED invoices: deletion leaves the
    stock contribution in place. Void the invoice first to reverse it.
    """
    invoice = delete_header_cascade(invoice_id)

    if invoice.state == InternalInvoice.STATE_CONFIRMED and getattr(
        settings, "INVOICING_WARN_ON_CONFIRMED_DELETE", True
    ):
        logger.warning(
            "Deleted a CONFIRMED invoice; stock was not reverted",
            extra={"invoice_id": str(invoice_id), "code": invoice.code},
        )
    else:
        logger.info("Invoice deleted", extra={"invoice_id": str(invoice_id), "state": invoice.state})


# ============================================================
# STATS
# ============================================================
def invoice_stats() -> dict:
    agg = InternalInvoice.objects.aggregate(
        total_invoices=Count("id"),
        draft=Count("id", filter=Q(state=InternalInvoice.STATE_DRAFT)),
        confirmed=Count("id", filter=Q(state=InternalInvoice.STATE_CONFIRMED)),
        voided=Count("id", filter=Q(state=InternalInvoice.STATE_VOIDED)),
        total_amount=Sum("total"),
    )
    return {
        "total_invoices": agg["total_invoices"] or 0,
        "draft": agg["draft"] or 0,
        "confirmed": agg["confirmed"] or 0,
        "voided": agg["voided"] or 0,
        "total_amount": str(Decimal(str(agg["total_amount"] or "0")).quantize(TWOPLACES)),
    }
