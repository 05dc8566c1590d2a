# products/models/product.py

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q

from .category import Category
from .unit import UnitOfMeasure


class Product(models.Model):
    """
    A stocked catalog item.

    STOCK MODEL (IMPORTANT):
    - stock_quantity is the current on-hand quantity.
    - Once a product appears on a CONFIRMED internal invoice, stock is only
      changed through products.services.stock.adjust_stock (relative F()
      update), never by overwriting the field.
    - reference_price is the last unit price a confirmed movement supplied.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=255, unique=True, db_index=True)
    description = models.TextField(blank=True, default="")

    category = models.ForeignKey(
        Category,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="products",
    )

    unit = models.ForeignKey(
        UnitOfMeasure,
        on_delete=models.PROTECT,
        related_name="products",
    )

    stock_quantity = models.DecimalField(
        max_digits=14,
        decimal_places=3,
        default=Decimal("0.000"),
    )
    min_stock = models.DecimalField(
        max_digits=14,
        decimal_places=3,
        default=Decimal("0.000"),
    )
    reference_price = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal("0.00"),
    )

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        constraints = [
            models.CheckConstraint(
                condition=Q(stock_quantity__gte=0),
                name="product_stock_quantity_non_negative",
            ),
            models.CheckConstraint(
                condition=Q(min_stock__gte=0),
                name="product_min_stock_non_negative",
            ),
            models.CheckConstraint(
                condition=Q(reference_price__gte=0),
                name="product_reference_price_non_negative",
            ),
        ]

    def __str__(self):
        return self.name

    def clean(self):
        self.name = (self.name or "").strip()
        if not self.name:
            raise ValidationError({"name": "name cannot be blank"})

        if self.stock_quantity is None or Decimal(self.stock_quantity) < 0:
            raise ValidationError({"stock_quantity": "stock_quantity cannot be negative"})

        if self.min_stock is None or Decimal(self.min_stock) < 0:
            raise ValidationError({"min_stock": "min_stock cannot be negative"})

        if self.reference_price is None or Decimal(self.reference_price) < 0:
            raise ValidationError({"reference_price": "reference_price cannot be negative"})

    @property
    def is_low_stock(self) -> bool:
        return Decimal(self.stock_quantity or 0) <= Decimal(self.min_stock or 0)
