# invoicing/api/serializers.py

from decimal import Decimal

from django.utils import timezone
from rest_framework import serializers

from invoicing.models import InternalInvoice, InvoiceLine, MovementType


class MovementTypeSerializer(serializers.ModelSerializer):
    name = serializers.CharField(max_length=100)

    class Meta:
        model = MovementType
        fields = ["id", "name", "description", "direction", "created_at", "updated_at"]
        read_only_fields = ("id", "created_at", "updated_at")

    def validate_name(self, value):
        value = (value or "").strip()
        if not value:
            raise serializers.ValidationError("name cannot be blank")
        return value


# ---------------- LINES ----------------
class InvoiceLineInputSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    quantity = serializers.DecimalField(
        max_digits=14,
        decimal_places=3,
        min_value=Decimal("0.001"),
    )
    unit_price = serializers.DecimalField(
        max_digits=14,
        decimal_places=2,
        min_value=Decimal("0.00"),
    )


class InvoiceLineSerializer(serializers.ModelSerializer):
    product_id = serializers.UUIDField(read_only=True)
    product_name = serializers.CharField(source="product.name", read_only=True)
    subtotal = serializers.DecimalField(max_digits=16, decimal_places=2, read_only=True)

    class Meta:
        model = InvoiceLine
        fields = ["id", "product_id", "product_name", "quantity", "unit_price", "subtotal"]
        read_only_fields = fields


# ---------------- HEADER INPUT ----------------
class _HeaderFieldsMixin(serializers.Serializer):
    code = serializers.CharField(max_length=InternalInvoice.CODE_MAX_LENGTH)
    movement_type_id = serializers.UUIDField()
    concept = serializers.CharField(max_length=255)
    responsible_user_id = serializers.UUIDField()
    movement_date = serializers.DateField()
    total = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=Decimal("0.00"))
    notes = serializers.CharField(allow_blank=True)

    def validate_code(self, value):
        value = (value or "").strip()
        if not value:
            raise serializers.ValidationError("code cannot be blank")
        return value

    def validate_concept(self, value):
        value = (value or "").strip()
        if not value:
            raise serializers.ValidationError("concept cannot be blank")
        return value


class InternalInvoiceCreateSerializer(_HeaderFieldsMixin):
    """
    POST /invoicing/invoices/

    responsible_user_id defaults to the caller; movement_date to today.
    """

    responsible_user_id = serializers.UUIDField(required=False)
    movement_date = serializers.DateField(required=False)
    total = serializers.DecimalField(
        max_digits=14, decimal_places=2, min_value=Decimal("0.00"), required=False
    )
    notes = serializers.CharField(allow_blank=True, required=False, default="")
    state = serializers.ChoiceField(
        choices=[InternalInvoice.STATE_DRAFT, InternalInvoice.STATE_CONFIRMED],
        required=False,
        default=InternalInvoice.STATE_DRAFT,
    )
    lines = InvoiceLineInputSerializer(many=True, allow_empty=False)

    def validate(self, attrs):
        attrs.setdefault("movement_date", timezone.localdate())
        return attrs


class InternalInvoiceUpdateSerializer(_HeaderFieldsMixin):
    """
    PATCH /invoicing/invoices/{id}/

    Every field optional. `lines` absent = lines unchanged;
    `lines: []` removes every line.
    """

    code = serializers.CharField(max_length=InternalInvoice.CODE_MAX_LENGTH, required=False)
    movement_type_id = serializers.UUIDField(required=False)
    concept = serializers.CharField(max_length=255, required=False)
    responsible_user_id = serializers.UUIDField(required=False)
    movement_date = serializers.DateField(required=False)
    total = serializers.DecimalField(
        max_digits=14, decimal_places=2, min_value=Decimal("0.00"), required=False
    )
    notes = serializers.CharField(allow_blank=True, required=False)
    state = serializers.ChoiceField(
        choices=[s for s, _ in InternalInvoice.STATES],
        required=False,
    )
    lines = InvoiceLineInputSerializer(many=True, required=False, allow_empty=True)


class InvoiceStateSerializer(serializers.Serializer):
    state = serializers.ChoiceField(choices=[s for s, _ in InternalInvoice.STATES])


# ---------------- OUTPUT ----------------
class InternalInvoiceSerializer(serializers.ModelSerializer):
    movement_type_name = serializers.CharField(source="movement_type.name", read_only=True)
    responsible_user_email = serializers.CharField(source="responsible_user.email", read_only=True)
    lines = InvoiceLineSerializer(many=True, read_only=True)
    line_count = serializers.SerializerMethodField()

    class Meta:
        model = InternalInvoice
        fields = [
            "id",
            "code",
            "movement_type",
            "movement_type_name",
            "concept",
            "responsible_user",
            "responsible_user_email",
            "movement_date",
            "total",
            "notes",
            "state",
            "lines",
            "line_count",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_line_count(self, obj) -> int:
        return len(obj.lines.all())


class InternalInvoiceListSerializer(serializers.ModelSerializer):
    movement_type_name = serializers.CharField(source="movement_type.name", read_only=True)
    responsible_user_email = serializers.CharField(source="responsible_user.email", read_only=True)

    class Meta:
        model = InternalInvoice
        fields = [
            "id",
            "code",
            "movement_type",
            "movement_type_name",
            "concept",
            "responsible_user",
            "responsible_user_email",
            "movement_date",
            "total",
            "state",
            "created_at",
        ]
        read_only_fields = fields
