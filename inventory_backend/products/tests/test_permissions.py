# products/tests/test_permissions.py

from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient

from products.models import Product
from products.tests.factories import make_product, make_unit

User = get_user_model()


class ProductApiTests(TestCase):
    """
    Catalog API + access rules.

    GUARANTEES:
    - Anonymous users get nothing
    - Every staff role can read; only catalog editors write
    - DELETE is a soft delete
    - stock_quantity is an opening balance only
    - adjust-stock maps InsufficientStock to 409
    """

    def setUp(self):
        self.client = APIClient()
        self.manager = User.objects.create_user(email="manager@example.com", password="password123", role="manager")
        self.auditor = User.objects.create_user(email="auditor@example.com", password="password123", role="auditor")
        self.unit = make_unit("Kilogram", "kg")
        self.product = make_product("Rice 1kg", stock="10", min_stock="20", unit=self.unit)

    def test_anonymous_user_is_rejected(self):
        res = self.client.get("/api/products/products/")
        self.assertEqual(res.status_code, 401)

    def test_auditor_can_read_but_not_write(self):
        self.client.force_authenticate(self.auditor)

        res = self.client.get("/api/products/products/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["count"], 1)

        res = self.client.post(
            "/api/products/products/",
            {"name": "Pasta", "unit": str(self.unit.pk)},
            format="json",
        )
        self.assertEqual(res.status_code, 403)

    def test_manager_creates_product_with_opening_stock(self):
        self.client.force_authenticate(self.manager)

        res = self.client.post(
            "/api/products/products/",
            {"name": "Pasta 500g", "unit": str(self.unit.pk), "stock_quantity": "25.5", "reference_price": "1.20"},
            format="json",
        )
        self.assertEqual(res.status_code, 201, res.data)
        self.assertEqual(Product.objects.get(name="Pasta 500g").stock_quantity, Decimal("25.5"))

    def test_stock_quantity_not_writable_on_update(self):
        self.client.force_authenticate(self.manager)

        res = self.client.patch(
            f"/api/products/products/{self.product.pk}/",
            {"stock_quantity": "999"},
            format="json",
        )
        self.assertEqual(res.status_code, 400)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock_quantity, Decimal("10"))

    def test_delete_is_soft(self):
        self.client.force_authenticate(self.manager)

        res = self.client.delete(f"/api/products/products/{self.product.pk}/")
        self.assertEqual(res.status_code, 204)

        self.product.refresh_from_db()
        self.assertFalse(self.product.is_active)

    def test_low_stock_alert(self):
        make_product("Well stocked", stock="100", min_stock="1", unit=self.unit)
        self.client.force_authenticate(self.auditor)

        res = self.client.get("/api/products/products/alerts/low-stock/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual([p["name"] for p in res.data["results"]], ["Rice 1kg"])

    def test_adjust_stock_requires_capability(self):
        self.client.force_authenticate(self.auditor)

        res = self.client.post(
            f"/api/products/products/{self.product.pk}/adjust-stock/",
            {"delta": "1"},
            format="json",
        )
        self.assertEqual(res.status_code, 403)

    def test_adjust_stock_conflict(self):
        self.client.force_authenticate(self.manager)

        res = self.client.post(
            f"/api/products/products/{self.product.pk}/adjust-stock/",
            {"delta": "-11", "note": "count"},
            format="json",
        )
        self.assertEqual(res.status_code, 409)
        self.assertEqual(res.data["product_name"], "Rice 1kg")
        self.assertEqual(Decimal(res.data["current_stock"]), Decimal("10"))

    def test_adjust_stock_success(self):
        self.client.force_authenticate(self.manager)

        res = self.client.post(
            f"/api/products/products/{self.product.pk}/adjust-stock/",
            {"delta": "-4"},
            format="json",
        )
        self.assertEqual(res.status_code, 200, res.data)
        self.assertEqual(Decimal(res.data["stock_quantity"]), Decimal("6"))
