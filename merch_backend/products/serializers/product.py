# products/serializers/product.py

"""
PRODUCT SERIALIZERS

- current_stock / landed_cost are read-only: the stock ledger owns them.
- opening_stock is accepted on create only.
"""

from rest_framework import serializers

from products.models import Product


class ProductSerializer(serializers.ModelSerializer):
    is_low_stock = serializers.BooleanField(read_only=True)
    is_out_of_stock = serializers.BooleanField(read_only=True)
    stock_value = serializers.DecimalField(max_digits=18, decimal_places=2, read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "sku",
            "name",
            "category",
            "brand",
            "cost_price",
            "wholesale_price",
            "retail_price",
            "weight_kg",
            "reorder_level",
            "moq",
            "opening_stock",
            "current_stock",
            "landed_cost",
            "stock_value",
            "is_low_stock",
            "is_out_of_stock",
            "warehouse_location",
            "status",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "id",
            "current_stock",
            "landed_cost",
            "stock_value",
            "is_low_stock",
            "is_out_of_stock",
            "created_at",
            "updated_at",
        ]

    def validate_sku(self, value):
        value = (value or "").strip().upper()
        if not value:
            raise serializers.ValidationError("SKU is required")
        return value

    def update(self, instance, validated_data):
        if "opening_stock" in validated_data and validated_data["opening_stock"] != instance.opening_stock:
            raise serializers.ValidationError(
                {"opening_stock": "Opening stock is fixed once the product exists"}
            )
        return super().update(instance, validated_data)
