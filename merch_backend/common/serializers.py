# common/serializers.py

from decimal import Decimal

from rest_framework import serializers


class PaymentInputSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=Decimal("0.01"))


def status_input_serializer(choices):
    """Build a {status} input serializer bound to a closed set of statuses."""

    class StatusInputSerializer(serializers.Serializer):
        status = serializers.ChoiceField(choices=choices)

    return StatusInputSerializer
