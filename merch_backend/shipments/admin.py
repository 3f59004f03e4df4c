# shipments/admin.py

from django.contrib import admin

from shipments.models import Shipment, ShippingCompany


@admin.register(ShippingCompany)
class ShippingCompanyAdmin(admin.ModelAdmin):
    list_display = ("name", "rate_per_kg", "rate_per_cbm", "min_charge", "is_active")
    search_fields = ("name", "contact_person")
    list_filter = ("is_active",)


@admin.register(Shipment)
class ShipmentAdmin(admin.ModelAdmin):
    """
    Delivery posts stock, so status and payments are driven
    by shipments.services.shipment_service only.
    """

    list_display = (
        "shipment_number",
        "purchase_order",
        "shipping_company",
        "method",
        "status",
        "payment_status",
        "total_cost",
        "estimated_arrival",
        "actual_arrival",
    )
    readonly_fields = (
        "shipment_number",
        "purchase_order",
        "status",
        "actual_arrival",
        "total_cost",
        "payment_status",
        "paid_amount",
        "created_by",
        "created_at",
        "updated_at",
    )
    search_fields = ("shipment_number", "tracking_number", "purchase_order__po_number")
    list_filter = ("status", "method", "payment_status")

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
