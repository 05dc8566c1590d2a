# invoicing/tests/test_invoice_service.py

import uuid
from decimal import Decimal
from types import SimpleNamespace

from django.test import TestCase, override_settings

from invoicing.models import InternalInvoice, InvoiceLine
from invoicing.services import (
    confirm_invoice,
    create_invoice,
    delete_invoice,
    invoice_stats,
    update_invoice,
    void_invoice,
)
from invoicing.services.exceptions import (
    DuplicateInvoiceCode,
    InvalidInvoiceHeader,
    InvalidInvoiceLine,
    InvalidInvoiceTransition,
    InvalidReference,
    InvoiceNotFound,
    TransitionNotPermitted,
)
from invoicing.services.types import InvoiceHeaderChanges
from invoicing.tests.factories import header, line, make_invoice, make_movement_type, make_user
from products.models import Product
from products.tests.factories import make_product


class InvoiceServiceTests(TestCase):
    def setUp(self):
        self.user = make_user()
        self.movement_type = make_movement_type()
        self.product = make_product("Cement 42kg", stock="50", price="8")

    def stock(self):
        return Product.objects.get(pk=self.product.pk).stock_quantity

    def invoice(self, code, lines=None, state="DRAFT", **extra):
        return make_invoice(
            code,
            lines if lines is not None else [line(self.product, 10, 9)],
            movement_type=self.movement_type,
            user=self.user,
            state=state,
            **extra,
        )

    # ---------------- CREATE ----------------
    def test_create_strips_code_and_stores_lines(self):
        inv = self.invoice("  INV-100  ", total=Decimal("90.00"), notes="Dock 3")

        inv.refresh_from_db()
        self.assertEqual(inv.code, "INV-100")
        self.assertEqual(inv.total, Decimal("90.00"))
        self.assertEqual(inv.notes, "Dock 3")
        self.assertEqual(inv.lines.count(), 1)
        self.assertEqual(inv.lines_total, Decimal("90.00"))

    def test_repeated_product_keeps_last_line(self):
        inv = self.invoice("INV-101", [line(self.product, 1, 1), line(self.product, 4, 2)], state="CONFIRMED")

        self.assertEqual(inv.lines.get().quantity, Decimal("4"))
        self.assertEqual(self.stock(), Decimal("54"))

    def test_duplicate_code_is_rejected(self):
        self.invoice("INV-102")
        with self.assertRaises(DuplicateInvoiceCode):
            self.invoice("INV-102")
        self.assertEqual(InternalInvoice.objects.filter(code="INV-102").count(), 1)

    def test_blank_code_and_concept_are_rejected(self):
        with self.assertRaises(InvalidInvoiceHeader):
            self.invoice("   ")
        with self.assertRaises(InvalidInvoiceHeader):
            self.invoice("INV-103", concept="  ")

    def test_unknown_references_are_rejected(self):
        with self.assertRaises(InvalidReference) as ctx:
            create_invoice(
                header=header("INV-104", movement_type=self.movement_type, user=self.user),
                lines=[{"product_id": uuid.uuid4(), "quantity": "1", "unit_price": "1"}],
            )
        self.assertEqual(ctx.exception.field, "product")

        other = SimpleNamespace(pk=uuid.uuid4())
        with self.assertRaises(InvalidReference) as ctx:
            create_invoice(
                header=header("INV-105", movement_type=other, user=self.user),
                lines=[line(self.product, 1, 1)],
            )
        self.assertEqual(ctx.exception.field, "movement_type")
        self.assertEqual(ctx.exception.value, other.pk)

        self.assertFalse(InternalInvoice.objects.exists())

    def test_inactive_product_is_rejected_on_create(self):
        retired = make_product("Old cement", stock="5", is_active=False)

        with self.assertRaises(InvalidReference) as ctx:
            self.invoice("INV-110", [line(self.product, 1, 1), line(retired, 1, 1)])

        self.assertEqual(ctx.exception.field, "product")
        self.assertEqual(str(ctx.exception.value), str(retired.pk))
        self.assertFalse(InternalInvoice.objects.exists())

    def test_invalid_lines_are_rejected(self):
        with self.assertRaises(InvalidInvoiceLine):
            self.invoice("INV-106", [])
        with self.assertRaises(InvalidInvoiceLine):
            self.invoice("INV-107", [{"product_id": self.product.pk, "quantity": "0", "unit_price": "1"}])
        with self.assertRaises(InvalidInvoiceLine):
            self.invoice("INV-108", [{"product_id": self.product.pk, "quantity": "1", "unit_price": "-1"}])

    def test_cannot_create_voided(self):
        with self.assertRaises(InvalidInvoiceTransition):
            self.invoice("INV-109", state="VOIDED")

    # ---------------- UPDATE ----------------
    def test_header_update_and_code_conflict(self):
        self.invoice("INV-200")
        inv = self.invoice("INV-201")

        result = update_invoice(inv.pk, changes=InvoiceHeaderChanges(code=" INV-201B ", notes="moved"))
        self.assertEqual(result.invoice.code, "INV-201B")

        with self.assertRaises(DuplicateInvoiceCode):
            update_invoice(inv.pk, changes=InvoiceHeaderChanges(code="INV-200"))

    def test_update_unknown_invoice(self):
        with self.assertRaises(InvoiceNotFound):
            update_invoice(uuid.uuid4(), new_state="CONFIRMED")

    def test_inactive_product_cannot_be_added_but_listed_one_stays(self):
        inv = self.invoice("INV-205", state="CONFIRMED")
        retired = make_product("Old cement", stock="5", is_active=False)
        Product.objects.filter(pk=self.product.pk).update(is_active=False)

        with self.assertRaises(InvalidReference):
            update_invoice(inv.pk, new_lines=[line(self.product, 10, 9), line(retired, 1, 1)])
        self.assertEqual(Product.objects.get(pk=retired.pk).stock_quantity, Decimal("5"))

        update_invoice(inv.pk, new_lines=[line(self.product, 4, 9)])
        self.assertEqual(self.stock(), Decimal("54"))

    def test_transition_check_sees_locked_state(self):
        inv = self.invoice("INV-206")
        # Someone else confirms after the caller last read the invoice as DRAFT.
        confirm_invoice(inv.pk)
        seen = []

        def refuse_reopen(from_state, to_state):
            seen.append((from_state, to_state))
            if from_state == "CONFIRMED":
                raise TransitionNotPermitted(from_state, to_state, ["invoices.confirm"])

        with self.assertRaises(TransitionNotPermitted) as ctx:
            update_invoice(inv.pk, new_state="DRAFT", check_transition=refuse_reopen)

        self.assertEqual(seen, [("CONFIRMED", "DRAFT")])
        self.assertEqual(ctx.exception.missing, ["invoices.confirm"])
        inv.refresh_from_db()
        self.assertEqual(inv.state, "CONFIRMED")
        self.assertEqual(self.stock(), Decimal("60"))

    def test_confirm_and_void_helpers(self):
        inv = self.invoice("INV-202")
        confirm_invoice(inv.pk)
        self.assertEqual(self.stock(), Decimal("60"))
        void_invoice(inv.pk)
        self.assertEqual(self.stock(), Decimal("50"))

    @override_settings(INVOICING_LOCK_VOIDED=True)
    def test_voided_invoice_is_read_only(self):
        inv = self.invoice("INV-203")
        void_invoice(inv.pk)

        with self.assertRaises(InvalidInvoiceTransition):
            confirm_invoice(inv.pk)
        with self.assertRaises(InvalidInvoiceTransition):
            update_invoice(inv.pk, changes=InvoiceHeaderChanges(concept="edited"))
        self.assertEqual(self.stock(), Decimal("50"))

    @override_settings(INVOICING_LOCK_VOIDED=False)
    def test_voided_invoice_can_be_confirmed_when_unlocked(self):
        inv = self.invoice("INV-204")
        void_invoice(inv.pk)
        confirm_invoice(inv.pk)
        self.assertEqual(self.stock(), Decimal("60"))

    # ---------------- DELETE ----------------
    def test_delete_confirmed_keeps_stock_and_warns(self):
        inv = self.invoice("INV-300", state="CONFIRMED")
        self.assertEqual(self.stock(), Decimal("60"))

        with self.assertLogs("invoicing", level="WARNING") as logs:
            delete_invoice(inv.pk)

        self.assertIn("stock was not reverted", logs.output[0])
        self.assertFalse(InternalInvoice.objects.filter(pk=inv.pk).exists())
        self.assertFalse(InvoiceLine.objects.exists())
        self.assertEqual(self.stock(), Decimal("60"))

    def test_delete_unknown_invoice(self):
        with self.assertRaises(InvoiceNotFound):
            delete_invoice(uuid.uuid4())

    # ---------------- STATS ----------------
    def test_stats(self):
        self.invoice("INV-400", total=Decimal("10.50"))
        self.invoice("INV-401", state="CONFIRMED", total=Decimal("4.25"))
        void_invoice(self.invoice("INV-402").pk)

        self.assertEqual(
            invoice_stats(),
            {
                "total_invoices": 3,
                "draft": 1,
                "confirmed": 1,
                "voided": 1,
                "total_amount": "14.75",
            },
        )
