# purchases/admin.py

from django.contrib import admin

from purchases.models import PurchaseOrder, PurchaseOrderItem, Supplier


# ======================================================
# SUPPLIER ADMIN
# ======================================================


@admin.register(Supplier)
class SupplierAdmin(admin.ModelAdmin):
    list_display = ("name", "contact_person", "country", "is_active")
    search_fields = ("name", "contact_person", "email")
    list_filter = ("is_active", "country")


# ======================================================
# PURCHASE ORDER ADMIN
# ======================================================


class PurchaseOrderItemInline(admin.TabularInline):
    model = PurchaseOrderItem
    extra = 0
    can_delete = False
    fields = ("product", "quantity", "unit_cost", "total_cost", "received_qty")
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(PurchaseOrder)
class PurchaseOrderAdmin(admin.ModelAdmin):
    list_display = (
        "po_number",
        "supplier",
        "status",
        "payment_status",
        "total_cost",
        "paid_amount",
        "order_date",
        "expected_date",
    )
    readonly_fields = (
        "po_number",
        "status",
        "payment_status",
        "subtotal",
        "total_cost",
        "paid_amount",
        "created_by",
        "created_at",
        "updated_at",
    )
    search_fields = ("po_number", "supplier__name")
    list_filter = ("status", "payment_status", "order_date")
    inlines = [PurchaseOrderItemInline]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
