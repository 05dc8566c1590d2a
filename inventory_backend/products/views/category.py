# products/views/category.py

from rest_framework import viewsets
from rest_framework.permissions import IsAuthenticated

from permissions.roles import CAP_CATALOG_EDIT, CAP_CATALOG_VIEW, HasCapability
from products.models import Category, UnitOfMeasure
from products.serializers import CategorySerializer, UnitOfMeasureSerializer


class CatalogPermissionMixin:
    """
    Policy:
    - READ needs catalog.view (every staff role has it)
    - CREATE/UPDATE/DELETE needs catalog.edit
    """

    def get_permissions(self):
        if self.action in {"list", "retrieve"}:
            self.required_capability = CAP_CATALOG_VIEW
        else:
            self.required_capability = CAP_CATALOG_EDIT
        return [IsAuthenticated(), HasCapability()]


class CategoryViewSet(CatalogPermissionMixin, viewsets.ModelViewSet):
    queryset = Category.objects.all().order_by("name")
    serializer_class = CategorySerializer
    filterset_fields = ["is_active"]


class UnitOfMeasureViewSet(CatalogPermissionMixin, viewsets.ModelViewSet):
    queryset = UnitOfMeasure.objects.all().order_by("name")
    serializer_class = UnitOfMeasureSerializer
    filterset_fields = ["is_active"]
