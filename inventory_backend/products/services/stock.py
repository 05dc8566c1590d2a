# products/services/stock.py

"""
PRODUCT STOCK STORE

The single point through which Product.stock_quantity changes.

Rules:
- adjust_stock is RELATIVE (stock = stock + delta). Calling it twice for
  the same logical change double counts; callers run it once per change,
  inside their own transaction.
- Negative deltas lock the product row and are rejected when the result
  would go below zero. Stock is left untouched on rejection.
- The increment itself is a single UPDATE with an F() expression, so
  concurrent deltas on one product from different invoices accumulate
  without lost updates.
- reference_price is overwritten only when a positive price is supplied
  (last writer wins, no history).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from products.models import Product, StockMovement
from products.services.exceptions import InsufficientStock, InvalidAdjustment, ProductNotFound

logger = logging.getLogger("inventory")

QTY_PLACES = Decimal("0.001")


def _qty(value) -> Decimal:
    return Decimal(str(value)).quantize(QTY_PLACES)


@transaction.atomic
def adjust_stock(*, product_id, delta, reference_price=None) -> None:
    """
    Apply a signed stock delta to one product.

    Joins the caller's transaction when there is one (reconciliation always
    calls this from inside its own atomic block).
    """
    delta = _qty(delta)

    if delta < 0:
        row = (
            Product.objects.select_for_update()
            .filter(pk=product_id)
            .values("name", "stock_quantity")
            .first()
        )
        if row is None:
            raise ProductNotFound(product_id)

        current = Decimal(row["stock_quantity"])
        if current + delta < 0:
            logger.info(
                "Stock adjustment rejected",
                extra={
                    "product_id": str(product_id),
                    "current_stock": str(current),
                    "attempted_delta": str(delta),
                },
            )
            raise InsufficientStock(
                product_id=product_id,
                product_name=row["name"],
                current_stock=current,
                attempted_delta=delta,
            )

    fields = {
        "stock_quantity": F("stock_quantity") + delta,
        "updated_at": timezone.now(),
    }
    if reference_price is not None and Decimal(str(reference_price)) > 0:
        fields["reference_price"] = Decimal(str(reference_price))

    updated = Product.objects.filter(pk=product_id).update(**fields)
    if not updated:
        raise ProductNotFound(product_id)

    logger.debug(
        "Stock adjusted",
        extra={
            "product_id": str(product_id),
            "delta": str(delta),
            "reference_price": str(reference_price) if reference_price is not None else None,
        },
    )


# =========================================================
# MANUAL ADJUSTMENT (AUDITED)
# =========================================================
@dataclass(frozen=True)
class ManualAdjustmentResult:
    product: Product
    movement: StockMovement
    delta: Decimal


def _to_delta(value) -> Decimal:
    if value is None or value == "" or isinstance(value, bool):
        raise InvalidAdjustment("delta is required")

    try:
        delta = _qty(value)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidAdjustment("delta must be a decimal number")

    if delta == 0:
        raise InvalidAdjustment("delta cannot be 0")

    return delta


@transaction.atomic
def manual_adjust_stock(*, product: Product, delta, user=None, note: str = "") -> ManualAdjustmentResult:
    """
    Manual stock correction (counting errors, breakage...).

    Goes through adjust_stock so the non-negative rule holds, and leaves an
    immutable StockMovement row behind.
    """
    delta = _to_delta(delta)

    before = (
        Product.objects.select_for_update()
        .filter(pk=product.pk)
        .values_list("stock_quantity", flat=True)
        .first()
    )
    if before is None:
        raise ProductNotFound(product.pk)

    adjust_stock(product_id=product.pk, delta=delta)

    product.refresh_from_db()

    movement = StockMovement.objects.create(
        product=product,
        movement_type=StockMovement.MovementType.IN if delta > 0 else StockMovement.MovementType.OUT,
        quantity=abs(delta),
        stock_before=before,
        stock_after=product.stock_quantity,
        note=(note or "").strip()[:255],
        performed_by=user,
    )

    logger.info(
        "Manual stock adjustment",
        extra={
            "product_id": str(product.pk),
            "delta": str(delta),
            "user_id": str(getattr(user, "pk", "") or ""),
        },
    )

    return ManualAdjustmentResult(product=product, movement=movement, delta=delta)
