# products/serializers/potential_product.py

from decimal import Decimal

from rest_framework import serializers

from products.models import PotentialProduct
from products.services.potential_products import MANUAL_STATUSES, estimate_margin


class PotentialProductSerializer(serializers.ModelSerializer):
    supplier_name = serializers.CharField(source="supplier.name", read_only=True, default=None)
    product_sku = serializers.CharField(source="product.sku", read_only=True, default=None)
    margin = serializers.SerializerMethodField()

    class Meta:
        model = PotentialProduct
        fields = [
            "id",
            "name",
            "description",
            "category",
            "brand",
            "supplier",
            "supplier_name",
            "supplier_sku",
            "source_url",
            "estimated_cost",
            "estimated_price",
            "moq",
            "weight_kg",
            "margin",
            "notes",
            "status",
            "product",
            "product_sku",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_margin(self, obj):
        estimate = estimate_margin(cost=obj.estimated_cost, price=obj.estimated_price, moq=obj.moq)
        if estimate is None:
            return None
        return {
            "margin_percent": str(estimate.margin_percent),
            "profit_per_unit": str(estimate.profit_per_unit),
            "total_investment": (
                str(estimate.total_investment) if estimate.total_investment is not None else None
            ),
        }


class PotentialProductInputSerializer(serializers.Serializer):
    name = serializers.CharField(min_length=2, max_length=200)
    description = serializers.CharField(max_length=2000, required=False, allow_blank=True)
    category = serializers.CharField(max_length=100, required=False, allow_blank=True)
    brand = serializers.CharField(max_length=100, required=False, allow_blank=True)
    supplier_id = serializers.UUIDField(required=False, allow_null=True)
    supplier_sku = serializers.CharField(max_length=100, required=False, allow_blank=True)
    source_url = serializers.URLField(required=False, allow_blank=True)
    estimated_cost = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=Decimal("0.01"), required=False, allow_null=True
    )
    estimated_price = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=Decimal("0.01"), required=False, allow_null=True
    )
    moq = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    weight_kg = serializers.DecimalField(
        max_digits=10, decimal_places=3, min_value=Decimal("0.001"), required=False, allow_null=True
    )
    notes = serializers.CharField(max_length=5000, required=False, allow_blank=True)
    status = serializers.ChoiceField(
        choices=[(s.value, s.label) for s in sorted(MANUAL_STATUSES)],
        required=False,
    )


class PotentialProductStatusInputSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[(s.value, s.label) for s in sorted(MANUAL_STATUSES)])


class ConvertToProductInputSerializer(serializers.Serializer):
    sku = serializers.CharField(min_length=2, max_length=64)
    wholesale_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal("0.01"))
    opening_stock = serializers.IntegerField(min_value=0, default=0)
    reorder_level = serializers.IntegerField(min_value=0, default=10)
    warehouse_location = serializers.CharField(max_length=100, required=False, allow_blank=True, default="")
