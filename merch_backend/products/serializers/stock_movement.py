# products/serializers/stock_movement.py

from rest_framework import serializers

from products.models import StockMovement


class StockMovementSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source="product.name", read_only=True)
    product_sku = serializers.CharField(source="product.sku", read_only=True)
    performed_by_email = serializers.EmailField(source="performed_by.email", read_only=True, default=None)

    class Meta:
        model = StockMovement
        fields = [
            "id",
            "product",
            "product_name",
            "product_sku",
            "movement_type",
            "reason",
            "quantity",
            "stock_before",
            "stock_after",
            "unit_cost",
            "landed_cost",
            "reference_type",
            "reference_id",
            "notes",
            "performed_by",
            "performed_by_email",
            "created_at",
        ]
        read_only_fields = fields


class StockAdjustmentInputSerializer(serializers.Serializer):
    quantity = serializers.IntegerField()
    reason = serializers.ChoiceField(choices=[(r.value, r.label) for r in StockMovement.ADJUSTMENT_REASONS])
    notes = serializers.CharField(min_length=5, max_length=1000)

    def validate_quantity(self, value):
        if value == 0:
            raise serializers.ValidationError("Quantity cannot be zero")
        return value
