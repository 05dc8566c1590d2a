# invoicing/api/views.py

"""
INTERNAL INVOICE API

Domain errors -> HTTP:
- InvoiceNotFound                        -> 404
- TransitionNotPermitted                 -> 403
- InsufficientStock, DuplicateInvoiceCode -> 409
- InvalidReference / InvalidInvoiceLine /
  InvalidInvoiceHeader / InvalidInvoiceTransition -> 400
- DatabaseError                          -> 500 (logged)

Capabilities:
- read             invoices.view
- create / edit    invoices.edit
- into or out of CONFIRMED also needs invoices.confirm
- into VOIDED also needs invoices.void
- delete           invoices.delete
"""

import logging
from decimal import Decimal

from django.db import DatabaseError
from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.generics import GenericAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from invoicing.api.filters import InternalInvoiceFilter
from invoicing.api.serializers import (
    InternalInvoiceCreateSerializer,
    InternalInvoiceListSerializer,
    InternalInvoiceSerializer,
    InternalInvoiceUpdateSerializer,
    InvoiceStateSerializer,
    MovementTypeSerializer,
)
from invoicing.models import InternalInvoice, MovementType
from invoicing.services.exceptions import (
    DuplicateInvoiceCode,
    InvalidInvoiceHeader,
    InvalidInvoiceLine,
    InvalidInvoiceTransition,
    InvalidReference,
    InvoiceNotFound,
    TransitionNotPermitted,
)
from invoicing.services.invoice_service import (
    change_state,
    create_invoice,
    delete_invoice,
    invoice_stats,
    update_invoice,
)
from invoicing.services.types import InvoiceHeaderChanges, InvoiceHeaderData, LineInput
from permissions.roles import (
    CAP_CATALOG_EDIT,
    CAP_CATALOG_VIEW,
    CAP_INVOICES_CONFIRM,
    CAP_INVOICES_DELETE,
    CAP_INVOICES_EDIT,
    CAP_INVOICES_VIEW,
    CAP_INVOICES_VOID,
    HasCapability,
    user_has_capability,
)
from products.services.exceptions import InsufficientStock, ProductNotFound

logger = logging.getLogger("invoicing")

_HEADER_FIELDS = (
    "code",
    "movement_type_id",
    "concept",
    "responsible_user_id",
    "movement_date",
    "total",
    "notes",
)


# ============================================================
# HELPERS
# ============================================================
def _error_response(exc: Exception) -> Response:
    if isinstance(exc, InvoiceNotFound):
        return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)

    if isinstance(exc, TransitionNotPermitted):
        return Response({"detail": str(exc), "missing": exc.missing}, status=status.HTTP_403_FORBIDDEN)

    if isinstance(exc, InsufficientStock):
        return Response({"detail": str(exc), **exc.as_dict()}, status=status.HTTP_409_CONFLICT)

    if isinstance(exc, DuplicateInvoiceCode):
        return Response({"detail": str(exc), "code": exc.code}, status=status.HTTP_409_CONFLICT)

    if isinstance(exc, InvalidReference):
        return Response(
            {"detail": str(exc), "field": exc.field, "value": str(exc.value)},
            status=status.HTTP_400_BAD_REQUEST,
        )

    if isinstance(exc, ProductNotFound):
        return Response(
            {"detail": str(exc), "field": "product", "value": str(exc.product_id)},
            status=status.HTTP_400_BAD_REQUEST,
        )

    if isinstance(exc, (InvalidInvoiceLine, InvalidInvoiceHeader, InvalidInvoiceTransition)):
        return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

    logger.exception("Invoice persistence failure")
    return Response(
        {"detail": "Internal error while saving the invoice"},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


_DOMAIN_ERRORS = (
    InvoiceNotFound,
    InsufficientStock,
    ProductNotFound,
    DuplicateInvoiceCode,
    InvalidReference,
    InvalidInvoiceLine,
    InvalidInvoiceHeader,
    InvalidInvoiceTransition,
    TransitionNotPermitted,
    DatabaseError,
)


def _state_capabilities(from_state: str, to_state: str) -> set:
    """Extra capabilities a state change needs on top of invoices.edit."""
    caps = set()
    if from_state == to_state:
        return caps
    if InternalInvoice.STATE_CONFIRMED in (from_state, to_state):
        caps.add(CAP_INVOICES_CONFIRM)
    if to_state == InternalInvoice.STATE_VOIDED:
        caps.add(CAP_INVOICES_VOID)
    return caps


def _missing_capability_response(user, caps: set):
    missing = sorted(c for c in caps if not user_has_capability(user, c))
    if missing:
        return Response(
            {"detail": "You do not have permission to perform this action.", "missing": missing},
            status=status.HTTP_403_FORBIDDEN,
        )
    return None


def _transition_guard(user):
    """Capability check run by the service once the invoice row is locked."""

    def check(from_state, to_state):
        missing = [c for c in _state_capabilities(from_state, to_state) if not user_has_capability(user, c)]
        if missing:
            raise TransitionNotPermitted(from_state, to_state, missing)

    return check


def _lines(validated) -> list:
    return [
        LineInput(
            product_id=line["product_id"],
            quantity=line["quantity"],
            unit_price=line["unit_price"],
        )
        for line in validated
    ]


def _detail(invoice_id) -> InternalInvoice:
    return (
        InternalInvoice.objects.select_related("movement_type", "responsible_user")
        .prefetch_related("lines", "lines__product")
        .get(pk=invoice_id)
    )


class CapabilityByMethodMixin:
    """Map HTTP method -> required capability (see method_capabilities)."""

    method_capabilities: dict = {}

    def get_permissions(self):
        self.required_capability = self.method_capabilities.get(self.request.method)
        return [IsAuthenticated(), HasCapability()]


# ============================================================
# MOVEMENT TYPES
# ============================================================
class MovementTypeViewSet(viewsets.ModelViewSet):
    queryset = MovementType.objects.all().order_by("name")
    serializer_class = MovementTypeSerializer
    filterset_fields = ["direction"]

    def get_permissions(self):
        if self.action in {"list", "retrieve"}:
            self.required_capability = CAP_CATALOG_VIEW
        else:
            self.required_capability = CAP_CATALOG_EDIT
        return [IsAuthenticated(), HasCapability()]


# ============================================================
# INVOICES
# ============================================================
class InternalInvoiceListCreateView(CapabilityByMethodMixin, GenericAPIView):
    method_capabilities = {
        "GET": CAP_INVOICES_VIEW,
        "POST": CAP_INVOICES_EDIT,
    }
    serializer_class = InternalInvoiceListSerializer
    filterset_class = InternalInvoiceFilter

    def get_queryset(self):
        return InternalInvoice.objects.select_related("movement_type", "responsible_user").order_by(
            "-movement_date", "-created_at"
        )

    @extend_schema(tags=["invoicing"], responses=InternalInvoiceListSerializer(many=True))
    def get(self, request):
        qs = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(qs)
        if page is not None:
            return self.get_paginated_response(self.get_serializer(page, many=True).data)
        return Response(self.get_serializer(qs, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["invoicing"],
        request=InternalInvoiceCreateSerializer,
        responses={
            201: InternalInvoiceSerializer,
            400: OpenApiResponse(description="Validation or reference error"),
            409: OpenApiResponse(description="Duplicate code or insufficient stock"),
        },
    )
    def post(self, request):
        s = InternalInvoiceCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        denied = _missing_capability_response(
            request.user, _state_capabilities(InternalInvoice.STATE_DRAFT, data["state"])
        )
        if denied is not None:
            return denied

        header = InvoiceHeaderData(
            code=data["code"],
            movement_type_id=data["movement_type_id"],
            concept=data["concept"],
            responsible_user_id=data.get("responsible_user_id") or request.user.pk,
            movement_date=data["movement_date"],
            total=data.get("total", Decimal("0.00")),
            notes=data.get("notes", ""),
            state=data["state"],
        )

        try:
            result = create_invoice(header=header, lines=_lines(data["lines"]))
        except _DOMAIN_ERRORS as exc:
            return _error_response(exc)

        return Response(
            InternalInvoiceSerializer(_detail(result.invoice.pk)).data,
            status=status.HTTP_201_CREATED,
        )


class InternalInvoiceDetailView(CapabilityByMethodMixin, GenericAPIView):
    method_capabilities = {
        "GET": CAP_INVOICES_VIEW,
        "PATCH": CAP_INVOICES_EDIT,
        "DELETE": CAP_INVOICES_DELETE,
    }
    serializer_class = InternalInvoiceSerializer

    @extend_schema(tags=["invoicing"], responses=InternalInvoiceSerializer)
    def get(self, request, invoice_id):
        try:
            invoice = _detail(invoice_id)
        except InternalInvoice.DoesNotExist:
            return _error_response(InvoiceNotFound(invoice_id))
        return Response(InternalInvoiceSerializer(invoice).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["invoicing"],
        request=InternalInvoiceUpdateSerializer,
        responses={
            200: InternalInvoiceSerializer,
            400: OpenApiResponse(description="Validation, reference or transition error"),
            403: OpenApiResponse(description="Missing capability for the state change"),
            404: OpenApiResponse(description="Invoice not found"),
            409: OpenApiResponse(description="Duplicate code or insufficient stock"),
        },
    )
    def patch(self, request, invoice_id):
        s = InternalInvoiceUpdateSerializer(data=request.data, partial=True)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        new_state = data.get("state")
        changes = InvoiceHeaderChanges(**{k: data[k] for k in _HEADER_FIELDS if k in data})
        new_lines = _lines(data["lines"]) if "lines" in data else None

        try:
            result = update_invoice(
                invoice_id,
                changes=changes,
                new_state=new_state,
                new_lines=new_lines,
                check_transition=_transition_guard(request.user),
            )
        except _DOMAIN_ERRORS as exc:
            return _error_response(exc)

        return Response(InternalInvoiceSerializer(_detail(result.invoice.pk)).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["invoicing"],
        responses={204: None, 404: OpenApiResponse(description="Invoice not found")},
        description="Deletes header + lines. Stock is NOT reverted; void first to reverse it.",
    )
    def delete(self, request, invoice_id):
        try:
            delete_invoice(invoice_id)
        except _DOMAIN_ERRORS as exc:
            return _error_response(exc)
        return Response(status=status.HTTP_204_NO_CONTENT)


class InvoiceStateView(CapabilityByMethodMixin, GenericAPIView):
    method_capabilities = {"POST": CAP_INVOICES_EDIT}
    serializer_class = InvoiceStateSerializer

    @extend_schema(
        tags=["invoicing"],
        request=InvoiceStateSerializer,
        responses={
            200: InternalInvoiceSerializer,
            400: OpenApiResponse(description="Transition not allowed"),
            403: OpenApiResponse(description="Missing capability for the state change"),
            404: OpenApiResponse(description="Invoice not found"),
            409: OpenApiResponse(description="Insufficient stock"),
        },
    )
    def post(self, request, invoice_id):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        new_state = s.validated_data["state"]

        try:
            result = change_state(invoice_id, new_state, check_transition=_transition_guard(request.user))
        except _DOMAIN_ERRORS as exc:
            return _error_response(exc)

        return Response(InternalInvoiceSerializer(_detail(result.invoice.pk)).data, status=status.HTTP_200_OK)


class InvoiceStatsView(CapabilityByMethodMixin, GenericAPIView):
    method_capabilities = {"GET": CAP_INVOICES_VIEW}

    @extend_schema(tags=["invoicing"], responses={200: dict})
    def get(self, request):
        return Response(invoice_stats(), status=status.HTTP_200_OK)
