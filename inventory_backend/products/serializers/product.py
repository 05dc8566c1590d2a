# products/serializers/product.py

"""
PRODUCT SERIALIZERS

Stock rules:
- stock_quantity may be set once, on create (opening balance).
- After that it is read-only here; it changes through invoice
  reconciliation or the audited adjust-stock endpoint.
"""

from decimal import Decimal

from rest_framework import serializers

from products.models import Category, Product, UnitOfMeasure


class ProductSerializer(serializers.ModelSerializer):
    category = serializers.PrimaryKeyRelatedField(
        queryset=Category.objects.all(),
        required=False,
        allow_null=True,
    )
    category_name = serializers.CharField(source="category.name", read_only=True, allow_null=True)

    unit = serializers.PrimaryKeyRelatedField(queryset=UnitOfMeasure.objects.all())
    unit_abbreviation = serializers.CharField(source="unit.abbreviation", read_only=True)

    stock_quantity = serializers.DecimalField(
        max_digits=14,
        decimal_places=3,
        required=False,
        min_value=Decimal("0"),
    )
    min_stock = serializers.DecimalField(
        max_digits=14,
        decimal_places=3,
        required=False,
        min_value=Decimal("0"),
    )
    reference_price = serializers.DecimalField(
        max_digits=14,
        decimal_places=2,
        required=False,
        min_value=Decimal("0"),
    )

    is_low_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "name",
            "description",
            "category",
            "category_name",
            "unit",
            "unit_abbreviation",
            "stock_quantity",
            "min_stock",
            "reference_price",
            "is_low_stock",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "id",
            "category_name",
            "unit_abbreviation",
            "is_low_stock",
            "created_at",
            "updated_at",
        ]

    def validate_name(self, value):
        value = (value or "").strip()
        if not value:
            raise serializers.ValidationError("name is required")
        return value

    def update(self, instance, validated_data):
        # Opening balance only; never overwrite live stock.
        if "stock_quantity" in validated_data:
            raise serializers.ValidationError(
                {"stock_quantity": "stock_quantity is read-only after creation; use adjust-stock."}
            )
        # Write only the submitted columns: a full-row save would put back the
        # stock_quantity read before any concurrent adjust_stock committed.
        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        instance.save(update_fields=[*validated_data.keys(), "updated_at"])
        return instance


class StockAdjustmentSerializer(serializers.Serializer):
    """Input for POST /products/products/{id}/adjust-stock/."""

    delta = serializers.DecimalField(max_digits=14, decimal_places=3)
    note = serializers.CharField(required=False, allow_blank=True, max_length=255, default="")

    def validate_delta(self, value):
        if value == 0:
            raise serializers.ValidationError("delta cannot be 0")
        return value
