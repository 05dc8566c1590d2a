# invoicing/tests/test_api.py

import uuid
from decimal import Decimal

from django.test import TestCase
from rest_framework.test import APIClient

from invoicing.models import InternalInvoice
from invoicing.tests.factories import line, make_invoice, make_movement_type, make_user
from products.models import Product
from products.tests.factories import make_product

BASE = "/api/invoicing/invoices/"


class InvoiceApiTests(TestCase):
    """
    HTTP mapping of invoice operations.

    - 201/200 on success with the full invoice (lines included)
    - 409 for duplicate codes and insufficient stock
    - 404 for unknown invoices, 400 for bad input or transitions
    - capability checks per role
    """

    def setUp(self):
        self.client = APIClient()
        self.admin = make_user("admin@example.com", role="admin")
        self.manager = make_user("manager@example.com", role="manager")
        self.clerk = make_user("clerk@example.com", role="warehouse")
        self.auditor = make_user("auditor@example.com", role="auditor")

        self.movement_type = make_movement_type()
        self.p = make_product("Paint 4L", stock="100", price="20")
        self.q = make_product("Brush", stock="3", price="2")

    def stock(self, product):
        return Product.objects.get(pk=product.pk).stock_quantity

    def payload(self, code="INV-1", state="DRAFT", lines=None):
        return {
            "code": code,
            "movement_type_id": str(self.movement_type.pk),
            "concept": "Restock from supplier",
            "state": state,
            "lines": lines
            if lines is not None
            else [{"product_id": str(self.p.pk), "quantity": "10", "unit_price": "25.00"}],
        }

    def existing(self, code="INV-X", state="DRAFT", lines=None):
        return make_invoice(
            code,
            lines or [line(self.p, 10, 25)],
            movement_type=self.movement_type,
            user=self.manager,
            state=state,
        )

    # ---------------- AUTH / CAPABILITIES ----------------
    def test_anonymous_is_rejected(self):
        res = self.client.get(BASE)
        self.assertEqual(res.status_code, 401)

    def test_auditor_reads_but_cannot_create(self):
        self.existing()
        self.client.force_authenticate(self.auditor)

        res = self.client.get(BASE)
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["count"], 1)

        res = self.client.post(BASE, self.payload(), format="json")
        self.assertEqual(res.status_code, 403)

    def test_clerk_creates_draft_but_cannot_confirm(self):
        self.client.force_authenticate(self.clerk)

        res = self.client.post(BASE, self.payload(), format="json")
        self.assertEqual(res.status_code, 201, res.data)
        self.assertEqual(res.data["responsible_user"], self.clerk.pk)

        res = self.client.post(BASE, self.payload(code="INV-2", state="CONFIRMED"), format="json")
        self.assertEqual(res.status_code, 403)

        invoice_id = InternalInvoice.objects.get(code="INV-1").pk
        res = self.client.post(f"{BASE}{invoice_id}/state/", {"state": "CONFIRMED"}, format="json")
        self.assertEqual(res.status_code, 403)
        self.assertEqual(self.stock(self.p), Decimal("100"))

    def test_clerk_cannot_reopen_confirmed_invoice(self):
        inv = self.existing(state="CONFIRMED")
        self.client.force_authenticate(self.clerk)

        res = self.client.patch(f"{BASE}{inv.pk}/", {"state": "DRAFT"}, format="json")
        self.assertEqual(res.status_code, 403)
        self.assertEqual(res.data["missing"], ["invoices.confirm"])

        res = self.client.post(f"{BASE}{inv.pk}/state/", {"state": "DRAFT"}, format="json")
        self.assertEqual(res.status_code, 403)

        inv.refresh_from_db()
        self.assertEqual(inv.state, "CONFIRMED")
        self.assertEqual(self.stock(self.p), Decimal("110"))

    def test_manager_cannot_delete(self):
        inv = self.existing()
        self.client.force_authenticate(self.manager)

        res = self.client.delete(f"{BASE}{inv.pk}/")
        self.assertEqual(res.status_code, 403)

    # ---------------- CREATE ----------------
    def test_create_confirmed_applies_stock(self):
        self.client.force_authenticate(self.manager)

        res = self.client.post(BASE, self.payload(state="CONFIRMED"), format="json")
        self.assertEqual(res.status_code, 201, res.data)
        self.assertEqual(res.data["state"], "CONFIRMED")
        self.assertEqual(res.data["line_count"], 1)
        self.assertEqual(len(res.data["lines"]), 1)
        self.assertEqual(self.stock(self.p), Decimal("110"))

    def test_duplicate_code_is_409(self):
        self.existing(code="INV-1")
        self.client.force_authenticate(self.manager)

        res = self.client.post(BASE, self.payload(code="INV-1"), format="json")
        self.assertEqual(res.status_code, 409)

    def test_unknown_product_is_400(self):
        self.client.force_authenticate(self.manager)

        bad = [{"product_id": str(uuid.uuid4()), "quantity": "1", "unit_price": "1"}]
        res = self.client.post(BASE, self.payload(lines=bad), format="json")
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["field"], "product")

    def test_inactive_product_is_400(self):
        Product.objects.filter(pk=self.q.pk).update(is_active=False)
        self.client.force_authenticate(self.manager)

        bad = [{"product_id": str(self.q.pk), "quantity": "1", "unit_price": "2"}]
        res = self.client.post(BASE, self.payload(lines=bad), format="json")
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["value"], str(self.q.pk))

    def test_invalid_line_is_400(self):
        self.client.force_authenticate(self.manager)

        bad = [{"product_id": str(self.p.pk), "quantity": "0", "unit_price": "1"}]
        res = self.client.post(BASE, self.payload(lines=bad), format="json")
        self.assertEqual(res.status_code, 400)

        res = self.client.post(BASE, self.payload(lines=[]), format="json")
        self.assertEqual(res.status_code, 400)
        self.assertFalse(InternalInvoice.objects.exists())

    # ---------------- DETAIL / UPDATE ----------------
    def test_unknown_invoice_is_404(self):
        self.client.force_authenticate(self.admin)
        missing = uuid.uuid4()

        self.assertEqual(self.client.get(f"{BASE}{missing}/").status_code, 404)
        self.assertEqual(
            self.client.patch(f"{BASE}{missing}/", {"concept": "x"}, format="json").status_code,
            404,
        )
        self.assertEqual(self.client.delete(f"{BASE}{missing}/").status_code, 404)

    def test_patch_lines_on_confirmed_invoice(self):
        inv = self.existing(state="CONFIRMED")
        self.client.force_authenticate(self.clerk)

        res = self.client.patch(
            f"{BASE}{inv.pk}/",
            {"lines": [{"product_id": str(self.p.pk), "quantity": "4", "unit_price": "25"}]},
            format="json",
        )
        self.assertEqual(res.status_code, 200, res.data)
        self.assertEqual(self.stock(self.p), Decimal("104"))

    def test_void_blocked_by_stock_is_409(self):
        inv = self.existing(state="CONFIRMED", lines=[line(self.q, 5, 2)])
        Product.objects.filter(pk=self.q.pk).update(stock_quantity=Decimal("1"))
        self.client.force_authenticate(self.manager)

        res = self.client.post(f"{BASE}{inv.pk}/state/", {"state": "VOIDED"}, format="json")
        self.assertEqual(res.status_code, 409)
        self.assertEqual(res.data["product_id"], str(self.q.pk))
        self.assertEqual(res.data["attempted_delta"], "-5.000")

        inv.refresh_from_db()
        self.assertEqual(inv.state, "CONFIRMED")

    def test_leaving_voided_is_400(self):
        inv = self.existing()
        self.client.force_authenticate(self.manager)

        res = self.client.post(f"{BASE}{inv.pk}/state/", {"state": "VOIDED"}, format="json")
        self.assertEqual(res.status_code, 200)

        res = self.client.post(f"{BASE}{inv.pk}/state/", {"state": "CONFIRMED"}, format="json")
        self.assertEqual(res.status_code, 400)
        self.assertEqual(self.stock(self.p), Decimal("100"))

    def test_admin_delete_keeps_stock(self):
        inv = self.existing(state="CONFIRMED")
        self.client.force_authenticate(self.admin)

        res = self.client.delete(f"{BASE}{inv.pk}/")
        self.assertEqual(res.status_code, 204)
        self.assertEqual(self.stock(self.p), Decimal("110"))

    # ---------------- LIST / STATS ----------------
    def test_list_filters(self):
        self.existing(code="INV-A")
        self.existing(code="INV-B", state="CONFIRMED")
        self.client.force_authenticate(self.auditor)

        res = self.client.get(BASE, {"state": "CONFIRMED"})
        self.assertEqual(res.status_code, 200)
        self.assertEqual([row["code"] for row in res.data["results"]], ["INV-B"])

        res = self.client.get(BASE, {"search": "inv-a"})
        self.assertEqual([row["code"] for row in res.data["results"]], ["INV-A"])

    def test_stats(self):
        self.existing(code="INV-A")
        self.client.force_authenticate(self.auditor)

        res = self.client.get(f"{BASE}stats/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["total_invoices"], 1)
        self.assertEqual(res.data["draft"], 1)


class MovementTypeApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.manager = make_user("manager@example.com", role="manager")
        self.auditor = make_user("auditor@example.com", role="auditor")

    def test_manager_creates_and_auditor_reads(self):
        self.client.force_authenticate(self.manager)
        res = self.client.post(
            "/api/invoicing/movement-types/",
            {"name": "Transfer out", "direction": "OUT"},
            format="json",
        )
        self.assertEqual(res.status_code, 201, res.data)

        self.client.force_authenticate(self.auditor)
        res = self.client.get("/api/invoicing/movement-types/")
        self.assertEqual(res.status_code, 200)

        res = self.client.post("/api/invoicing/movement-types/", {"name": "Other"}, format="json")
        self.assertEqual(res.status_code, 403)
