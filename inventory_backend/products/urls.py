# products/urls.py

"""
PRODUCTS URLS

Registered under /api/products/:
- categories/
- units/
- products/ (+ alerts/low-stock/, {id}/adjust-stock/)
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from products.views import CategoryViewSet, ProductViewSet, UnitOfMeasureViewSet

router = DefaultRouter()

router.register(r"categories", CategoryViewSet, basename="categories")
router.register(r"units", UnitOfMeasureViewSet, basename="units")
router.register(r"products", ProductViewSet, basename="products")

urlpatterns = [
    path("", include(router.urls)),
]
