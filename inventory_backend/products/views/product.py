# products/views/product.py

"""
PRODUCT VIEWSET

Purpose:
- Catalog CRUD (soft delete)
- Low stock alerts
- Audited manual stock adjustment
"""

import logging

from django.db.models import F, Q
from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from permissions.roles import (
    CAP_CATALOG_EDIT,
    CAP_CATALOG_VIEW,
    CAP_INVENTORY_ADJUST,
    HasCapability,
)
from products.models import Product
from products.serializers import ProductSerializer, StockAdjustmentSerializer
from products.services.exceptions import InsufficientStock, InvalidAdjustment, ProductNotFound
from products.services.stock import manual_adjust_stock

logger = logging.getLogger("inventory")


class ProductViewSet(viewsets.ModelViewSet):
    """
    Product endpoints.

    - GET    /products/products/?category=&unit=&is_active=&search=
    - DELETE /products/products/{id}/ deactivates (is_active=False)
    - GET    /products/products/alerts/low-stock/
    - POST   /products/products/{id}/adjust-stock/
    """

    serializer_class = ProductSerializer
    filterset_fields = ["category", "unit", "is_active"]

    def get_permissions(self):
        if self.action in {"list", "retrieve", "low_stock_alerts"}:
            self.required_capability = CAP_CATALOG_VIEW
        elif self.action == "adjust_stock":
            self.required_capability = CAP_INVENTORY_ADJUST
        else:
            self.required_capability = CAP_CATALOG_EDIT
        return [IsAuthenticated(), HasCapability()]

    def get_queryset(self):
        qs = Product.objects.select_related("category", "unit").order_by("name")

        q = (self.request.query_params.get("search") or "").strip()
        if q:
            qs = qs.filter(Q(name__icontains=q) | Q(description__icontains=q))

        return qs

    # -----------------------------
    # Soft delete
    # -----------------------------
    def perform_destroy(self, instance):
        # Invoice lines PROTECT the row; deactivate instead of deleting.
        instance.is_active = False
        instance.save(update_fields=["is_active", "updated_at"])
        logger.info("Product deactivated", extra={"product_id": str(instance.pk)})

    # -----------------------------
    # Alerts: Low stock
    # -----------------------------
    @extend_schema(
        parameters=[
            OpenApiParameter(
                name="include_inactive",
                type=bool,
                location=OpenApiParameter.QUERY,
                required=False,
            ),
        ],
        responses={200: ProductSerializer(many=True)},
        description="Products whose stock_quantity is at or below min_stock.",
    )
    @action(detail=False, methods=["get"], url_path="alerts/low-stock")
    def low_stock_alerts(self, request):
        """
        GET /products/products/alerts/low-stock/

        Optional query params:
        - include_inactive=true|false (default false)
        """
        qs = self.get_queryset().filter(stock_quantity__lte=F("min_stock"))

        include_inactive = (
            request.query_params.get("include_inactive") or ""
        ).strip().lower() in ("1", "true", "yes")

        if not include_inactive:
            qs = qs.filter(is_active=True)

        data = self.get_serializer(qs, many=True).data
        return Response({"count": len(data), "results": data})

    # -----------------------------
    # Manual stock adjustment
    # -----------------------------
    @extend_schema(
        request=StockAdjustmentSerializer,
        responses={
            200: ProductSerializer,
            400: OpenApiResponse(description="Invalid delta"),
            409: OpenApiResponse(description="Adjustment would make stock negative"),
        },
    )
    @action(detail=True, methods=["post"], url_path="adjust-stock")
    def adjust_stock(self, request, pk=None):
        product = self.get_object()

        serializer = StockAdjustmentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            result = manual_adjust_stock(
                product=product,
                delta=serializer.validated_data["delta"],
                user=request.user,
                note=serializer.validated_data.get("note", ""),
            )
        except InsufficientStock as exc:
            return Response(
                {"detail": str(exc), **exc.as_dict()},
                status=status.HTTP_409_CONFLICT,
            )
        except ProductNotFound as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)
        except InvalidAdjustment as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(self.get_serializer(result.product).data, status=status.HTTP_200_OK)
