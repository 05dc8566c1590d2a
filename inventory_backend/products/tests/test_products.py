# products/tests/test_products.py

from decimal import Decimal
from types import SimpleNamespace

from django.contrib import admin
from django.db import IntegrityError, transaction
from django.test import TestCase

from products.admin import ProductAdmin
from products.models import Product
from products.serializers import ProductSerializer
from products.services.stock import adjust_stock
from products.tests.factories import make_category, make_product, make_unit


class ProductModelTests(TestCase):
    """
    Product model tests.

    GUARANTEES:
    - Products can be created safely
    - Name uniqueness is enforced
    - Stock can never be stored negative (DB constraint)
    """

    def test_product_creation(self):
        product = make_product("Olive Oil 1L", stock="12", price="9.50", category=make_category())

        self.assertEqual(product.name, "Olive Oil 1L")
        self.assertEqual(product.stock_quantity, Decimal("12"))
        self.assertEqual(product.category.name, "Groceries")

    def test_name_must_be_unique(self):
        make_product("Sugar 1kg")

        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                make_product("Sugar 1kg")

    def test_negative_stock_rejected_by_database(self):
        product = make_product("Flour 1kg", stock="1")

        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                Product.objects.filter(pk=product.pk).update(stock_quantity=Decimal("-1"))

        product.refresh_from_db()
        self.assertEqual(product.stock_quantity, Decimal("1"))

    def test_is_low_stock(self):
        product = make_product("Salt", stock="5", min_stock="5")
        self.assertTrue(product.is_low_stock)

        product.stock_quantity = Decimal("5.001")
        self.assertFalse(product.is_low_stock)

    def test_unit_is_protected(self):
        unit = make_unit("Box", "bx")
        make_product("Tea", unit=unit)

        from django.db.models import ProtectedError

        with self.assertRaises(ProtectedError):
            unit.delete()

    def test_product_string_representation(self):
        product = make_product("Cough Syrup")
        self.assertIn("Cough Syrup", str(product))


class ProductEditKeepsLiveStockTests(TestCase):
    """
    Editing catalog fields must not write back a stock_quantity read
    before a concurrent adjustment committed.
    """

    def setUp(self):
        self.product = make_product("Pasta 500g", stock="100", price="2")

    def test_serializer_edit_keeps_concurrent_delta(self):
        loaded = Product.objects.get(pk=self.product.pk)
        adjust_stock(product_id=self.product.pk, delta=Decimal("5"))

        serializer = ProductSerializer(loaded, data={"description": "new text"}, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()

        fresh = Product.objects.get(pk=self.product.pk)
        self.assertEqual(fresh.stock_quantity, Decimal("105"))
        self.assertEqual(fresh.description, "new text")

    def test_admin_change_keeps_concurrent_delta(self):
        loaded = Product.objects.get(pk=self.product.pk)
        adjust_stock(product_id=self.product.pk, delta=Decimal("-30"))

        loaded.min_stock = Decimal("10")
        form = SimpleNamespace(changed_data=["min_stock", "stock_quantity"])
        ProductAdmin(Product, admin.site).save_model(request=None, obj=loaded, form=form, change=True)

        fresh = Product.objects.get(pk=self.product.pk)
        self.assertEqual(fresh.stock_quantity, Decimal("70"))
        self.assertEqual(fresh.min_stock, Decimal("10"))
