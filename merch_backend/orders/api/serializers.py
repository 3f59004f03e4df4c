# orders/api/serializers.py

from rest_framework import serializers

from orders.models import Order, OrderItem


# ==========================================================
# READ
# ==========================================================

class OrderItemSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source="product.name", read_only=True)
    product_sku = serializers.CharField(source="product.sku", read_only=True)

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "product",
            "product_name",
            "product_sku",
            "quantity",
            "unit_price",
            "total_price",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    items = OrderItemSerializer(many=True, read_only=True)
    balance = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "order_type",
            "customer_name",
            "customer_phone",
            "customer_email",
            "company_name",
            "shipping_address",
            "city",
            "status",
            "payment_status",
            "subtotal",
            "shipping_fee",
            "discount",
            "total",
            "paid_amount",
            "balance",
            "notes",
            "items",
            "created_by",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_balance(self, obj) -> str:
        return str(obj.total - obj.paid_amount)


# ==========================================================
# WRITE
# ==========================================================

class OrderItemInputSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)
    unit_price = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0, required=False)


class OrderHeaderInputSerializer(serializers.Serializer):
    order_type = serializers.ChoiceField(choices=Order.OrderType.choices, required=False)
    customer_name = serializers.CharField(max_length=200, required=False)
    customer_phone = serializers.CharField(max_length=50, required=False, allow_blank=True)
    customer_email = serializers.EmailField(required=False, allow_blank=True)
    company_name = serializers.CharField(max_length=200, required=False, allow_blank=True)
    shipping_address = serializers.CharField(required=False, allow_blank=True)
    city = serializers.CharField(max_length=100, required=False, allow_blank=True)
    shipping_fee = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0, required=False)
    discount = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0, required=False)
    notes = serializers.CharField(required=False, allow_blank=True)


class OrderCreateSerializer(OrderHeaderInputSerializer):
    customer_name = serializers.CharField(max_length=200)
    status = serializers.ChoiceField(
        choices=[Order.Status.PENDING, Order.Status.CONFIRMED],
        default=Order.Status.PENDING,
    )
    items = OrderItemInputSerializer(many=True, allow_empty=False)

    def validate(self, attrs):
        if attrs.get("order_type") == Order.OrderType.WHOLESALE and not (attrs.get("company_name") or "").strip():
            raise serializers.ValidationError({"company_name": "Company name is required for wholesale orders"})
        return attrs


class OrderUpdateSerializer(OrderHeaderInputSerializer):
    items = OrderItemInputSerializer(many=True, allow_empty=False, required=False)
