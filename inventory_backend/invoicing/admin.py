# invoicing/admin.py
"""
Invoices are read-only in the admin: any edit must go through the
invoice service so stock stays reconciled.
"""

from django.contrib import admin

from invoicing.models import InternalInvoice, InvoiceLine, MovementType


@admin.register(MovementType)
class MovementTypeAdmin(admin.ModelAdmin):
    list_display = ("name", "direction", "created_at")
    list_filter = ("direction",)
    search_fields = ("name",)
    ordering = ("name",)


class InvoiceLineInline(admin.TabularInline):
    model = InvoiceLine
    extra = 0
    fields = ("product", "quantity", "unit_price")
    readonly_fields = fields
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(InternalInvoice)
class InternalInvoiceAdmin(admin.ModelAdmin):
    list_display = ("code", "movement_type", "concept", "movement_date", "total", "state")
    list_filter = ("state", "movement_type", "movement_date")
    search_fields = ("code", "concept")
    ordering = ("-movement_date", "-created_at")
    inlines = [InvoiceLineInline]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
