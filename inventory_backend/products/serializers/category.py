# products/serializers/category.py

from rest_framework import serializers

from products.models import Category, UnitOfMeasure


class CategorySerializer(serializers.ModelSerializer):
    """
    Category serializer.

    Rules:
    - name is writable and trimmed
    - id + timestamps are read-only
    """

    name = serializers.CharField(required=True, allow_blank=False, max_length=100)

    class Meta:
        model = Category
        fields = ["id", "name", "description", "is_active", "created_at", "updated_at"]
        read_only_fields = ["id", "created_at", "updated_at"]

    def validate_name(self, value: str):
        v = (value or "").strip()
        if not v:
            raise serializers.ValidationError("name cannot be blank")
        return v


class UnitOfMeasureSerializer(serializers.ModelSerializer):
    name = serializers.CharField(required=True, allow_blank=False, max_length=50)
    abbreviation = serializers.CharField(required=True, allow_blank=False, max_length=10)

    class Meta:
        model = UnitOfMeasure
        fields = [
            "id",
            "name",
            "abbreviation",
            "description",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "created_at", "updated_at"]

    def validate_name(self, value: str):
        v = (value or "").strip()
        if not v:
            raise serializers.ValidationError("name cannot be blank")
        return v

    def validate_abbreviation(self, value: str):
        v = (value or "").strip()
        if not v:
            raise serializers.ValidationError("abbreviation cannot be blank")
        return v
