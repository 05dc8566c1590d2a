# products/tests/factories.py

from decimal import Decimal

from products.models import Category, Product, UnitOfMeasure


def make_unit(name="Unit", abbreviation="u"):
    unit, _ = UnitOfMeasure.objects.get_or_create(
        name=name, defaults={"abbreviation": abbreviation}
    )
    return unit


def make_product(name="Rice 1kg", *, stock="0", min_stock="0", price="0", unit=None, category=None, **extra):
    return Product.objects.create(
        name=name,
        unit=unit or make_unit(),
        category=category,
        stock_quantity=Decimal(stock),
        min_stock=Decimal(min_stock),
        reference_price=Decimal(price),
        **extra,
    )


def make_category(name="Groceries"):
    return Category.objects.create(name=name)
