# orders/api/views.py

"""
======================================================
PATH: orders/api/views.py
======================================================
ORDER VIEWSET (STAFF)

- list / retrieve: plain DRF reads (filterable by status, payment_status, order_type)
- create, update, delete, status, cancel, payments: service calls wrapped in
  the {success, data|error} envelope
"""

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated

from common.results import invalid, run_service
from common.serializers import PaymentInputSerializer, status_input_serializer
from orders.api.serializers import (
    OrderCreateSerializer,
    OrderSerializer,
    OrderUpdateSerializer,
)
from orders.models import Order
from orders.services import order_service

OrderStatusInputSerializer = status_input_serializer(Order.Status.choices)


def _serialize(order):
    return OrderSerializer(order_service.get_order(order.pk)).data


@extend_schema(tags=["Orders"])
class OrderViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    serializer_class = OrderSerializer
    permission_classes = [IsAuthenticated]
    lookup_value_regex = "[0-9a-f-]{36}"
    filterset_fields = ["status", "payment_status", "order_type"]

    def get_queryset(self):
        return Order.objects.prefetch_related("items__product").order_by("-created_at")

    @extend_schema(request=OrderCreateSerializer, responses={201: OrderSerializer})
    def create(self, request, *args, **kwargs):
        serializer = OrderCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid(serializer.errors)
        v = dict(serializer.validated_data)

        return run_service(
            "createOrder",
            order_service.create_order,
            items=v.pop("items"),
            status=v.pop("status"),
            user=request.user,
            serialize=_serialize,
            status_code=status.HTTP_201_CREATED,
            **v,
        )

    @extend_schema(request=OrderUpdateSerializer, responses=OrderSerializer)
    def partial_update(self, request, pk=None):
        serializer = OrderUpdateSerializer(data=request.data, partial=True)
        if not serializer.is_valid():
            return invalid(serializer.errors)
        v = dict(serializer.validated_data)

        return run_service(
            "updateOrder",
            order_service.update_order,
            order_id=pk,
            items=v.pop("items", None),
            user=request.user,
            serialize=_serialize,
            **v,
        )

    def destroy(self, request, pk=None):
        return run_service(
            "deleteOrder",
            order_service.delete_order,
            order_id=pk,
            user=request.user,
        )

    @extend_schema(request=OrderStatusInputSerializer, responses=OrderSerializer)
    @action(detail=True, methods=["post"], url_path="status")
    def set_status(self, request, pk=None):
        serializer = OrderStatusInputSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid(serializer.errors)

        return run_service(
            "updateOrderStatus",
            order_service.update_order_status,
            order_id=pk,
            status=serializer.validated_data["status"],
            user=request.user,
            serialize=_serialize,
        )

    @extend_schema(request=None, responses=OrderSerializer)
    @action(detail=True, methods=["post"], url_path="cancel")
    def cancel(self, request, pk=None):
        return run_service(
            "cancelOrder",
            order_service.cancel_order,
            order_id=pk,
            user=request.user,
            serialize=_serialize,
        )

    @extend_schema(request=PaymentInputSerializer, responses=OrderSerializer)
    @action(detail=True, methods=["post"], url_path="payments")
    def payments(self, request, pk=None):
        serializer = PaymentInputSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid(serializer.errors)

        return run_service(
            "recordOrderPayment",
            order_service.record_order_payment,
            order_id=pk,
            amount=serializer.validated_data["amount"],
            user=request.user,
            serialize=_serialize,
        )
