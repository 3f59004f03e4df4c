# products/admin.py
"""
=====================================================
PATH: products/admin.py
=====================================================

Admin rules (ledger-safe):

- Product metadata is editable; opening_stock only when the product is added.
- current_stock and landed_cost are read-only; they move only through
  products.services.stock_ledger.
- StockMovement rows are view-only (no add / change / delete from admin).
- PotentialProduct status and conversion are driven by the API only.
"""

from __future__ import annotations

from django.contrib import admin

from products.models import PotentialProduct, Product, StockMovement


# =====================================================
# STOCK MOVEMENT INLINE (VIEW-ONLY)
# =====================================================

class StockMovementInline(admin.TabularInline):
    model = StockMovement
    extra = 0
    can_delete = False
    show_change_link = False
    ordering = ("-created_at",)

    fields = (
        "created_at",
        "movement_type",
        "reason",
        "quantity",
        "stock_before",
        "stock_after",
        "landed_cost",
        "reference_type",
        "reference_id",
    )
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


# =====================================================
# PRODUCT
# =====================================================

@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = (
        "sku",
        "name",
        "category",
        "brand",
        "retail_price",
        "current_stock",
        "landed_cost",
        "is_low_stock",
        "status",
    )
    list_filter = ("status", "category", "brand")
    search_fields = ("sku", "name")
    ordering = ("name",)

    inlines = [StockMovementInline]

    def get_readonly_fields(self, request, obj=None):
        readonly = ["current_stock", "landed_cost", "created_at", "updated_at"]
        if obj is not None:
            readonly.append("opening_stock")
        return readonly

    @admin.display(boolean=True, description="Low stock")
    def is_low_stock(self, obj):
        return obj.is_low_stock


# =====================================================
# STOCK MOVEMENT (VIEW-ONLY LIST)
# =====================================================

@admin.register(StockMovement)
class StockMovementAdmin(admin.ModelAdmin):
    """
    Audit view of the ledger. Corrections go through the API
    (adjust-stock, or DELETE on a movement by a manager).
    """

    list_display = (
        "created_at",
        "product",
        "movement_type",
        "reason",
        "quantity",
        "stock_before",
        "stock_after",
        "reference_type",
        "performed_by",
    )
    list_filter = ("movement_type", "reason", "reference_type", "created_at")
    search_fields = ("product__name", "product__sku", "notes")
    ordering = ("-created_at",)

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# =====================================================
# POTENTIAL PRODUCT
# =====================================================

@admin.register(PotentialProduct)
class PotentialProductAdmin(admin.ModelAdmin):
    list_display = (
        "name",
        "supplier",
        "estimated_cost",
        "estimated_price",
        "status",
        "product",
        "created_by",
        "created_at",
    )
    list_filter = ("status",)
    search_fields = ("name", "supplier_sku", "supplier__name")
    ordering = ("-created_at",)
    readonly_fields = ("status", "product", "created_by", "created_at", "updated_at")
