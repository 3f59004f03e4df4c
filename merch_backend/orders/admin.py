# orders/admin.py

from django.contrib import admin

from orders.models import Order, OrderItem


# ======================================================
# ORDER ADMIN
# ======================================================
# Status, totals and payments change through orders.services.order_service
# (stock deductions are posted there), so they are read-only here.


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    can_delete = False
    fields = ("product", "quantity", "unit_price", "total_price")
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = (
        "order_number",
        "order_type",
        "customer_name",
        "status",
        "payment_status",
        "total",
        "paid_amount",
        "created_at",
    )
    readonly_fields = (
        "order_number",
        "status",
        "payment_status",
        "subtotal",
        "total",
        "paid_amount",
        "created_by",
        "created_at",
        "updated_at",
    )
    search_fields = ("order_number", "customer_name", "company_name", "customer_phone")
    list_filter = ("status", "payment_status", "order_type", "created_at")
    inlines = [OrderItemInline]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
