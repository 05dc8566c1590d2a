# products/admin.py
"""
=====================================================
PATH: products/admin.py
=====================================================

Admin rules (audit-safe stock):

- stock_quantity is editable only when a product is first created
  (opening balance). Afterwards it is read-only; stock moves through
  internal invoices or the audited adjust-stock endpoint.
- StockMovement rows are view-only.
"""

from __future__ import annotations

from django.contrib import admin

from products.models import Category, Product, StockMovement, UnitOfMeasure


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ("name", "is_active")
    list_filter = ("is_active",)
    search_fields = ("name",)
    ordering = ("name",)


@admin.register(UnitOfMeasure)
class UnitOfMeasureAdmin(admin.ModelAdmin):
    list_display = ("name", "abbreviation", "is_active")
    search_fields = ("name", "abbreviation")
    ordering = ("name",)


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = (
        "name",
        "category",
        "unit",
        "stock_quantity",
        "min_stock",
        "reference_price",
        "is_low_stock",
        "is_active",
    )
    list_filter = ("is_active", "category", "unit")
    search_fields = ("name", "description")
    ordering = ("name",)

    def get_readonly_fields(self, request, obj=None):
        base = ("created_at", "updated_at")
        if obj is not None:
            return base + ("stock_quantity",)
        return base

    def save_model(self, request, obj, form, change):
        if not change:
            return super().save_model(request, obj, form, change)
        # stock_quantity moves only through adjust_stock; never write it back.
        fields = [f for f in form.changed_data if f != "stock_quantity"]
        if fields:
            obj.save(update_fields=[*fields, "updated_at"])


@admin.register(StockMovement)
class StockMovementAdmin(admin.ModelAdmin):
    list_display = (
        "product",
        "movement_type",
        "quantity",
        "stock_before",
        "stock_after",
        "performed_by",
        "created_at",
    )
    list_filter = ("movement_type", "created_at")
    search_fields = ("product__name", "note")
    ordering = ("-created_at",)

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
