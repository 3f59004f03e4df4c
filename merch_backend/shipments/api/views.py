# shipments/api/views.py

"""
======================================================
PATH: shipments/api/views.py
======================================================
SHIPMENT VIEWSETS (STAFF)

- shipping companies: list / create (rate cards)
- shipments: list / retrieve, plus create, update, delete, status,
  process-delivery, payments and estimate-cost through the service layer
"""

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated

from common.results import invalid, run_service
from common.serializers import PaymentInputSerializer, status_input_serializer
from shipments.api.serializers import (
    ShipmentCreateSerializer,
    ShipmentDetailsSerializer,
    ShipmentSerializer,
    ShippingCompanySerializer,
    ShippingEstimateInputSerializer,
    delivery_data,
)
from shipments.models import Shipment, ShippingCompany
from shipments.services import delivery as delivery_service
from shipments.services import shipment_service
from users.permissions import IsManagerOrAdmin

ShipmentStatusInputSerializer = status_input_serializer(Shipment.Status.choices)


def _serialize(shipment):
    return ShipmentSerializer(shipment_service.get_shipment(shipment.pk)).data


def _serialize_transition(result):
    data = _serialize(result.shipment)
    data["delivery"] = delivery_data(result.delivery)
    return data


@extend_schema(tags=["Shipments"])
class ShippingCompanyViewSet(mixins.ListModelMixin, mixins.CreateModelMixin, viewsets.GenericViewSet):
    serializer_class = ShippingCompanySerializer
    permission_classes = [IsAuthenticated]
    queryset = ShippingCompany.objects.filter(is_active=True).order_by("name")


@extend_schema(tags=["Shipments"])
class ShipmentViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    serializer_class = ShipmentSerializer
    permission_classes = [IsAuthenticated]
    lookup_value_regex = "[0-9a-f-]{36}"
    filterset_fields = ["status", "payment_status", "method", "shipping_company"]

    def get_permissions(self):
        if self.action == "process_delivery":
            return [IsAuthenticated(), IsManagerOrAdmin()]
        return super().get_permissions()

    def get_queryset(self):
        return Shipment.objects.select_related("purchase_order", "shipping_company").order_by("-created_at")

    @extend_schema(request=ShipmentCreateSerializer, responses={201: ShipmentSerializer})
    def create(self, request, *args, **kwargs):
        serializer = ShipmentCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid(serializer.errors)

        return run_service(
            "createShipment",
            shipment_service.create_shipment,
            user=request.user,
            serialize=_serialize,
            status_code=status.HTTP_201_CREATED,
            **serializer.validated_data,
        )

    @extend_schema(request=ShipmentDetailsSerializer, responses=ShipmentSerializer)
    def partial_update(self, request, pk=None):
        serializer = ShipmentDetailsSerializer(data=request.data, partial=True)
        if not serializer.is_valid():
            return invalid(serializer.errors)

        return run_service(
            "updateShipment",
            shipment_service.update_shipment,
            shipment_id=pk,
            user=request.user,
            serialize=_serialize,
            **serializer.validated_data,
        )

    def destroy(self, request, pk=None):
        return run_service(
            "deleteShipment",
            shipment_service.delete_shipment,
            shipment_id=pk,
            user=request.user,
        )

    @extend_schema(request=ShipmentStatusInputSerializer, responses=ShipmentSerializer)
    @action(detail=True, methods=["post"], url_path="status")
    def set_status(self, request, pk=None):
        serializer = ShipmentStatusInputSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid(serializer.errors)

        return run_service(
            "updateShipmentStatus",
            shipment_service.update_shipment_status,
            shipment_id=pk,
            status=serializer.validated_data["status"],
            user=request.user,
            serialize=_serialize_transition,
        )

    @extend_schema(request=None)
    @action(detail=True, methods=["post"], url_path="process-delivery")
    def process_delivery(self, request, pk=None):
        return run_service(
            "processShipmentDelivery",
            delivery_service.process_shipment_delivery,
            shipment_id=pk,
            user=request.user,
            serialize=delivery_data,
        )

    @extend_schema(request=PaymentInputSerializer, responses=ShipmentSerializer)
    @action(detail=True, methods=["post"], url_path="payments")
    def payments(self, request, pk=None):
        serializer = PaymentInputSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid(serializer.errors)

        return run_service(
            "recordShipmentPayment",
            shipment_service.record_shipment_payment,
            shipment_id=pk,
            amount=serializer.validated_data["amount"],
            user=request.user,
            serialize=_serialize,
        )

    @extend_schema(request=ShippingEstimateInputSerializer)
    @action(detail=False, methods=["post"], url_path="estimate-cost")
    def estimate_cost(self, request):
        serializer = ShippingEstimateInputSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid(serializer.errors)

        return run_service(
            "estimateShippingCost",
            shipment_service.quote_shipping_cost,
            **serializer.validated_data,
        )
