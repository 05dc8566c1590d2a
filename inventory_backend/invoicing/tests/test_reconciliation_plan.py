# invoicing/tests/test_reconciliation_plan.py

from decimal import Decimal

from django.test import SimpleTestCase

from invoicing.services.reconciliation import dedupe_by_product, plan_reconciliation
from invoicing.services.types import LineInput, LineSnapshot

P = "00000000-0000-0000-0000-00000000000a"
Q = "00000000-0000-0000-0000-00000000000b"


def snap(line_id, product_id, qty, price):
    return LineSnapshot(line_id=line_id, product_id=product_id, quantity=Decimal(qty), unit_price=Decimal(price))


def new(product_id, qty, price):
    return LineInput(product_id=product_id, quantity=Decimal(qty), unit_price=Decimal(price))


def deltas(plan):
    return {str(a.product_id): (a.delta, a.reference_price) for a in plan.adjustments}


class PlanWithoutLinesTests(SimpleTestCase):
    """Lines absent: the state transition alone decides the effect."""

    def setUp(self):
        self.old = [snap(1, P, "10", "50"), snap(2, Q, "3", "0")]

    def test_same_state_has_no_effect(self):
        plan = plan_reconciliation(old_state="CONFIRMED", old_lines=self.old, new_state="CONFIRMED")
        self.assertEqual(plan.adjustments, ())
        self.assertIsNone(plan.lines)

    def test_into_confirmed_adds_every_line_with_price(self):
        plan = plan_reconciliation(old_state="DRAFT", old_lines=self.old, new_state="CONFIRMED")
        self.assertEqual(
            deltas(plan),
            {P: (Decimal("10.000"), Decimal("50")), Q: (Decimal("3.000"), Decimal("0"))},
        )
        self.assertIsNone(plan.lines)

    def test_out_of_confirmed_reverts_without_price(self):
        plan = plan_reconciliation(old_state="CONFIRMED", old_lines=self.old, new_state="VOIDED")
        self.assertEqual(deltas(plan), {P: (Decimal("-10.000"), None), Q: (Decimal("-3.000"), None)})

    def test_draft_to_voided_has_no_effect(self):
        plan = plan_reconciliation(old_state="DRAFT", old_lines=self.old, new_state="VOIDED")
        self.assertEqual(plan.adjustments, ())


class PlanWithLinesTests(SimpleTestCase):
    def test_confirmed_to_confirmed_applies_quantity_delta(self):
        plan = plan_reconciliation(
            old_state="CONFIRMED",
            old_lines=[snap(1, P, "10", "50")],
            new_state="CONFIRMED",
            new_lines=[new(P, "15", "55")],
        )
        self.assertEqual(deltas(plan), {P: (Decimal("5.000"), Decimal("55"))})
        self.assertEqual(len(plan.lines.to_update), 1)
        self.assertEqual(plan.lines.to_insert, ())
        self.assertEqual(plan.lines.to_delete, ())

    def test_unchanged_confirmed_line_is_a_no_op(self):
        plan = plan_reconciliation(
            old_state="CONFIRMED",
            old_lines=[snap(1, P, "10", "50")],
            new_lines=[new(P, "10", "50.00")],
        )
        self.assertEqual(plan.adjustments, ())
        self.assertTrue(plan.lines.is_empty)

    def test_price_only_change_keeps_a_zero_delta_for_the_price(self):
        plan = plan_reconciliation(
            old_state="CONFIRMED",
            old_lines=[snap(1, P, "10", "50")],
            new_lines=[new(P, "10", "65")],
        )
        self.assertEqual(deltas(plan), {P: (Decimal("0.000"), Decimal("65"))})

    def test_removed_and_added_lines_while_confirmed(self):
        plan = plan_reconciliation(
            old_state="CONFIRMED",
            old_lines=[snap(1, P, "12", "55")],
            new_state="CONFIRMED",
            new_lines=[new(Q, "5", "110")],
        )
        self.assertEqual(
            deltas(plan),
            {P: (Decimal("-12.000"), None), Q: (Decimal("5.000"), Decimal("110"))},
        )
        self.assertEqual(plan.lines.to_delete, (1,))
        self.assertEqual(len(plan.lines.to_insert), 1)

    def test_draft_to_confirmed_common_line_applies_full_new_quantity(self):
        plan = plan_reconciliation(
            old_state="DRAFT",
            old_lines=[snap(1, P, "10", "50")],
            new_state="CONFIRMED",
            new_lines=[new(P, "4", "50")],
        )
        self.assertEqual(deltas(plan), {P: (Decimal("4.000"), Decimal("50"))})

    def test_confirmed_to_draft_common_line_reverts_full_old_quantity(self):
        plan = plan_reconciliation(
            old_state="CONFIRMED",
            old_lines=[snap(1, P, "10", "50")],
            new_state="DRAFT",
            new_lines=[new(P, "4", "50")],
        )
        self.assertEqual(deltas(plan), {P: (Decimal("-10.000"), None)})

    def test_draft_edits_never_touch_stock(self):
        plan = plan_reconciliation(
            old_state="DRAFT",
            old_lines=[snap(1, P, "10", "50")],
            new_lines=[new(P, "7", "40"), new(Q, "1", "1")],
        )
        self.assertEqual(plan.adjustments, ())
        self.assertEqual(len(plan.lines.to_update), 1)
        self.assertEqual(len(plan.lines.to_insert), 1)

    def test_empty_new_lines_remove_everything(self):
        plan = plan_reconciliation(
            old_state="CONFIRMED",
            old_lines=[snap(1, P, "10", "50"), snap(2, Q, "2", "5")],
            new_lines=[],
        )
        self.assertEqual(set(plan.lines.to_delete), {1, 2})
        self.assertEqual(deltas(plan), {P: (Decimal("-10.000"), None), Q: (Decimal("-2.000"), None)})

    def test_adjustments_are_ordered_by_product_id(self):
        plan = plan_reconciliation(
            old_state="DRAFT",
            old_lines=[],
            new_state="CONFIRMED",
            new_lines=[new(Q, "1", "1"), new(P, "1", "1")],
        )
        self.assertEqual([a.product_id for a in plan.adjustments], [P, Q])


class DedupeTests(SimpleTestCase):
    def test_last_occurrence_wins(self):
        out = dedupe_by_product([new(P, "1", "1"), new(Q, "2", "2"), new(P, "9", "3")])
        self.assertEqual(out[P].quantity, Decimal("9"))
        self.assertEqual(len(out), 2)
