# invoicing/models.py

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from products.models import Product

TWOPLACES = Decimal("0.01")


def _money(v) -> Decimal:
    return Decimal(str(v or "0.00")).quantize(TWOPLACES)


User = settings.AUTH_USER_MODEL


class MovementType(models.Model):
    """
    Kind of internal movement (purchase receipt, transfer, write-off...).

    direction is informational only: the stock sign of an invoice comes
    from its lifecycle state, never from its movement type.
    """

    DIRECTION_IN = "IN"
    DIRECTION_OUT = "OUT"

    DIRECTIONS = [
        (DIRECTION_IN, "Inbound"),
        (DIRECTION_OUT, "Outbound"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=100, unique=True)
    description = models.TextField(blank=True, default="")
    direction = models.CharField(max_length=3, choices=DIRECTIONS, default=DIRECTION_IN)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def clean(self):
        self.name = (self.name or "").strip()
        if not self.name:
            raise ValidationError({"name": "name is required"})

    def __str__(self):
        return self.name


class InternalInvoice(models.Model):
    """
    Internal invoice (movement document) header.

    Only CONFIRMED invoices contribute to product stock. Every change of
    state or lines goes through invoicing.services.reconciliation, which
    applies the stock deltas and the header/line writes in one transaction.
    """

    STATE_DRAFT = "DRAFT"
    STATE_CONFIRMED = "CONFIRMED"
    STATE_VOIDED = "VOIDED"

    STATES = [
        (STATE_DRAFT, "Draft"),
        (STATE_CONFIRMED, "Confirmed"),
        (STATE_VOIDED, "Voided"),
    ]

    CODE_MAX_LENGTH = 50

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    code = models.CharField(max_length=CODE_MAX_LENGTH, unique=True)

    movement_type = models.ForeignKey(
        MovementType,
        on_delete=models.PROTECT,
        related_name="invoices",
    )

    concept = models.CharField(max_length=255)

    responsible_user = models.ForeignKey(
        User,
        on_delete=models.PROTECT,
        related_name="internal_invoices",
    )

    movement_date = models.DateField(default=timezone.localdate)

    total = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    notes = models.TextField(blank=True, default="")

    state = models.CharField(max_length=20, choices=STATES, default=STATE_DRAFT)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-movement_date", "-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(total__gte=Decimal("0.00")),
                name="internal_invoice_total_nonnegative",
            ),
            models.CheckConstraint(
                condition=models.Q(state__in=["DRAFT", "CONFIRMED", "VOIDED"]),
                name="internal_invoice_state_valid",
            ),
        ]
        indexes = [
            models.Index(fields=["state", "movement_date"], name="invoice_state_date_idx"),
            models.Index(fields=["movement_type", "movement_date"], name="invoice_type_date_idx"),
        ]

    def clean(self):
        if not (self.code or "").strip():
            raise ValidationError({"code": "code is required"})

        if not (self.concept or "").strip():
            raise ValidationError({"concept": "concept is required"})

        if self.total is not None and self.total < Decimal("0.00"):
            raise ValidationError({"total": "total cannot be negative"})

    def save(self, *args, **kwargs):
        if self.code is not None:
            self.code = self.code.strip()
        if self.concept is not None:
            self.concept = self.concept.strip()
        self.full_clean()
        return super().save(*args, **kwargs)

    @property
    def is_confirmed(self) -> bool:
        return self.state == self.STATE_CONFIRMED

    @property
    def lines_total(self) -> Decimal:
        return _money(sum((line.subtotal for line in self.lines.all()), Decimal("0.00")))

    def __str__(self):
        return f"{self.code} ({self.state})"


class InvoiceLine(models.Model):
    """
    One (product, quantity, unit price) row of an internal invoice.
    At most one row per product per invoice.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    invoice = models.ForeignKey(
        InternalInvoice,
        on_delete=models.CASCADE,
        related_name="lines",
    )
    product = models.ForeignKey(
        Product,
        on_delete=models.PROTECT,
        related_name="invoice_lines",
    )

    quantity = models.DecimalField(max_digits=14, decimal_places=3)
    unit_price = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gt=0),
                name="invoice_line_quantity_gt_zero",
            ),
            models.CheckConstraint(
                condition=models.Q(unit_price__gte=Decimal("0.00")),
                name="invoice_line_unit_price_nonnegative",
            ),
            models.UniqueConstraint(
                fields=["invoice", "product"],
                name="uniq_invoice_line_product",
            ),
        ]

    def clean(self):
        if self.quantity is not None and self.quantity <= 0:
            raise ValidationError({"quantity": "quantity must be > 0"})

        if self.unit_price is not None and self.unit_price < Decimal("0.00"):
            raise ValidationError({"unit_price": "unit_price cannot be negative"})

    @property
    def subtotal(self) -> Decimal:
        return _money(Decimal(str(self.quantity)) * Decimal(str(self.unit_price)))

    def __str__(self):
        product_name = getattr(self.product, "name", "Product")
        return f"{product_name} x {self.quantity}"
