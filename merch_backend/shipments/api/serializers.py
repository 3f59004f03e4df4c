# shipments/api/serializers.py

from dataclasses import asdict

from rest_framework import serializers

from shipments.models import Shipment, ShippingCompany


class ShippingCompanySerializer(serializers.ModelSerializer):
    class Meta:
        model = ShippingCompany
        fields = "__all__"
        read_only_fields = ("id", "created_at")


class ShipmentSerializer(serializers.ModelSerializer):
    po_number = serializers.CharField(source="purchase_order.po_number", read_only=True)
    shipping_company_name = serializers.CharField(
        source="shipping_company.name", read_only=True, default=None
    )
    balance = serializers.SerializerMethodField()

    class Meta:
        model = Shipment
        fields = [
            "id",
            "shipment_number",
            "purchase_order",
            "po_number",
            "shipping_company",
            "shipping_company_name",
            "method",
            "status",
            "tracking_number",
            "departure_date",
            "estimated_arrival",
            "actual_arrival",
            "total_weight",
            "total_volume",
            "shipping_cost",
            "customs_duty",
            "other_fees",
            "total_cost",
            "payment_status",
            "paid_amount",
            "balance",
            "notes",
            "created_by",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_balance(self, obj):
        return str(obj.total_cost - obj.paid_amount)


def delivery_data(delivery):
    if delivery is None:
        return None
    data = asdict(delivery)
    data["shipment_id"] = str(delivery.shipment_id)
    data["purchase_order_id"] = str(delivery.purchase_order_id)
    data["movement_ids"] = [str(pk) for pk in delivery.movement_ids]
    return data


# ==========================================================
# INPUT
# ==========================================================

_charge = dict(max_digits=14, decimal_places=2, min_value=0, required=False)
_measure = dict(max_digits=12, decimal_places=3, min_value=0, required=False, allow_null=True)


class ShipmentDetailsSerializer(serializers.Serializer):
    shipping_company_id = serializers.UUIDField(required=False, allow_null=True)
    method = serializers.ChoiceField(choices=Shipment.Method.choices, required=False)
    tracking_number = serializers.CharField(required=False, allow_blank=True, max_length=100)
    departure_date = serializers.DateField(required=False, allow_null=True)
    estimated_arrival = serializers.DateField(required=False, allow_null=True)
    total_weight = serializers.DecimalField(**_measure)
    total_volume = serializers.DecimalField(**_measure)
    shipping_cost = serializers.DecimalField(**_charge)
    customs_duty = serializers.DecimalField(**_charge)
    other_fees = serializers.DecimalField(**_charge)
    notes = serializers.CharField(required=False, allow_blank=True)

    def validate(self, attrs):
        departure = attrs.get("departure_date")
        arrival = attrs.get("estimated_arrival")
        if departure and arrival and arrival < departure:
            raise serializers.ValidationError(
                {"estimated_arrival": "estimated_arrival cannot be before departure_date"}
            )
        return attrs


class ShipmentCreateSerializer(ShipmentDetailsSerializer):
    purchase_order_id = serializers.UUIDField()


class ShippingEstimateInputSerializer(serializers.Serializer):
    shipping_company_id = serializers.UUIDField()
    method = serializers.ChoiceField(choices=Shipment.Method.choices)
    total_weight = serializers.DecimalField(**_measure)
    total_volume = serializers.DecimalField(**_measure)
