# purchases/api/serializers.py

from rest_framework import serializers

from purchases.models import PurchaseOrder, PurchaseOrderItem, Supplier
from purchases.services.purchase_order_service import has_shipment


class SupplierSerializer(serializers.ModelSerializer):
    class Meta:
        model = Supplier
        fields = "__all__"
        read_only_fields = ("id", "created_at")


class PurchaseOrderItemSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source="product.name", read_only=True)
    product_sku = serializers.CharField(source="product.sku", read_only=True)
    outstanding_qty = serializers.IntegerField(read_only=True)

    class Meta:
        model = PurchaseOrderItem
        fields = [
            "id",
            "product",
            "product_name",
            "product_sku",
            "quantity",
            "unit_cost",
            "total_cost",
            "received_qty",
            "outstanding_qty",
        ]
        read_only_fields = fields


class PurchaseOrderSerializer(serializers.ModelSerializer):
    supplier_name = serializers.CharField(source="supplier.name", read_only=True)
    items = PurchaseOrderItemSerializer(many=True, read_only=True)
    shipment_id = serializers.SerializerMethodField()

    class Meta:
        model = PurchaseOrder
        fields = [
            "id",
            "po_number",
            "supplier",
            "supplier_name",
            "order_date",
            "expected_date",
            "status",
            "payment_status",
            "subtotal",
            "shipping_estimate",
            "total_cost",
            "paid_amount",
            "notes",
            "items",
            "shipment_id",
            "created_by",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_shipment_id(self, obj):
        if not has_shipment(obj):
            return None
        return str(obj.shipment.pk)


class PurchaseOrderItemCreateSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)
    unit_cost = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0)


class PurchaseOrderCreateSerializer(serializers.Serializer):
    supplier_id = serializers.UUIDField()
    order_date = serializers.DateField(required=False)
    expected_date = serializers.DateField(required=False, allow_null=True)
    shipping_estimate = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0, required=False)
    notes = serializers.CharField(required=False, allow_blank=True)
    items = PurchaseOrderItemCreateSerializer(many=True, allow_empty=False)

    def validate(self, attrs):
        order_date = attrs.get("order_date")
        expected_date = attrs.get("expected_date")
        if order_date and expected_date and expected_date < order_date:
            raise serializers.ValidationError({"expected_date": "expected_date cannot be before order_date"})
        return attrs


class PurchaseOrderUpdateSerializer(serializers.Serializer):
    supplier_id = serializers.UUIDField(required=False)
    order_date = serializers.DateField(required=False)
    expected_date = serializers.DateField(required=False, allow_null=True)
    shipping_estimate = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0, required=False)
    notes = serializers.CharField(required=False, allow_blank=True)
    items = PurchaseOrderItemCreateSerializer(many=True, allow_empty=False, required=False)
