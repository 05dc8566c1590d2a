# invoicing/api/urls.py

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from invoicing.api.views import (
    InternalInvoiceDetailView,
    InternalInvoiceListCreateView,
    InvoiceStateView,
    InvoiceStatsView,
    MovementTypeViewSet,
)

router = DefaultRouter()
router.register(r"movement-types", MovementTypeViewSet, basename="movement-types")

urlpatterns = [
    path("", include(router.urls)),
    path("invoices/", InternalInvoiceListCreateView.as_view(), name="internal-invoices"),
    path("invoices/stats/", InvoiceStatsView.as_view(), name="internal-invoice-stats"),
    path(
        "invoices/<uuid:invoice_id>/",
        InternalInvoiceDetailView.as_view(),
        name="internal-invoice-detail",
    ),
    path(
        "invoices/<uuid:invoice_id>/state/",
        InvoiceStateView.as_view(),
        name="internal-invoice-state",
    ),
]
