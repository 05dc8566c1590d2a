# products/models/unit.py

import uuid

from django.core.exceptions import ValidationError
from django.db import models


class UnitOfMeasure(models.Model):
    """
    Unit a product is counted in (kg, box, unit, litre...).
    Stock quantities are decimals so fractional units are allowed.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=50, unique=True)
    abbreviation = models.CharField(max_length=10, unique=True)
    description = models.TextField(blank=True, default="")
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        verbose_name = "unit of measure"
        verbose_name_plural = "units of measure"

    def clean(self):
        self.name = (self.name or "").strip()
        self.abbreviation = (self.abbreviation or "").strip()
        if not self.name:
            raise ValidationError({"name": "name cannot be blank"})
        if not self.abbreviation:
            raise ValidationError({"abbreviation": "abbreviation cannot be blank"})

    def __str__(self):
        return f"{self.name} ({self.abbreviation})"
