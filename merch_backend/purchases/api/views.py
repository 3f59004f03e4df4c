# purchases/api/views.py

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.generics import GenericAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from common.results import invalid, run_service
from common.serializers import PaymentInputSerializer, status_input_serializer
from purchases.api.serializers import (
    PurchaseOrderCreateSerializer,
    PurchaseOrderSerializer,
    PurchaseOrderUpdateSerializer,
    SupplierSerializer,
)
from purchases.models import PurchaseOrder, Supplier
from purchases.services import purchase_order_service

PurchaseOrderStatusInputSerializer = status_input_serializer(PurchaseOrder.Status.choices)


def _serialize(po):
    return PurchaseOrderSerializer(purchase_order_service.get_purchase_order(po.pk)).data


class SupplierListCreateView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = SupplierSerializer

    @extend_schema(tags=["purchases"], responses=SupplierSerializer(many=True))
    def get(self, request):
        qs = Supplier.objects.filter(is_active=True).order_by("name")
        return Response(
            SupplierSerializer(qs, many=True).data, status=status.HTTP_200_OK
        )

    @extend_schema(
        tags=["purchases"],
        request=SupplierSerializer,
        responses={201: SupplierSerializer},
    )
    def post(self, request):
        s = SupplierSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        supplier = s.save()
        return Response(
            SupplierSerializer(supplier).data, status=status.HTTP_201_CREATED
        )


class PurchaseOrderListCreateView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = PurchaseOrderSerializer
    filterset_fields = ["status", "payment_status", "supplier"]

    def get_queryset(self):
        return (
            PurchaseOrder.objects.select_related("supplier")
            .prefetch_related("items", "items__product")
            .order_by("-created_at")
        )

    @extend_schema(tags=["purchases"], responses=PurchaseOrderSerializer(many=True))
    def get(self, request):
        qs = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(qs)
        if page is not None:
            return self.get_paginated_response(PurchaseOrderSerializer(page, many=True).data)
        return Response(PurchaseOrderSerializer(qs, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["purchases"],
        request=PurchaseOrderCreateSerializer,
        responses={201: PurchaseOrderSerializer},
    )
    def post(self, request):
        s = PurchaseOrderCreateSerializer(data=request.data)
        if not s.is_valid():
            return invalid(s.errors)
        data = dict(s.validated_data)

        return run_service(
            "createPurchaseOrder",
            purchase_order_service.create_purchase_order,
            supplier_id=data["supplier_id"],
            items=data["items"],
            shipping_estimate=data.get("shipping_estimate", 0),
            order_date=data.get("order_date"),
            expected_date=data.get("expected_date"),
            notes=data.get("notes", ""),
            user=request.user,
            serialize=_serialize,
            status_code=status.HTTP_201_CREATED,
        )


class PurchaseOrderDetailView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = PurchaseOrderSerializer

    @extend_schema(tags=["purchases"], responses=PurchaseOrderSerializer)
    def get(self, request, purchase_order_id):
        return run_service(
            "getPurchaseOrder",
            purchase_order_service.get_purchase_order,
            purchase_order_id,
            serialize=lambda po: PurchaseOrderSerializer(po).data,
        )

    @extend_schema(tags=["purchases"], request=PurchaseOrderUpdateSerializer, responses=PurchaseOrderSerializer)
    def patch(self, request, purchase_order_id):
        s = PurchaseOrderUpdateSerializer(data=request.data, partial=True)
        if not s.is_valid():
            return invalid(s.errors)
        data = dict(s.validated_data)

        return run_service(
            "updatePurchaseOrder",
            purchase_order_service.update_purchase_order,
            purchase_order_id=purchase_order_id,
            items=data.pop("items", None),
            user=request.user,
            serialize=_serialize,
            **data,
        )

    @extend_schema(tags=["purchases"], responses=None)
    def delete(self, request, purchase_order_id):
        return run_service(
            "deletePurchaseOrder",
            purchase_order_service.delete_purchase_order,
            purchase_order_id=purchase_order_id,
            user=request.user,
        )


class PurchaseOrderStatusView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = PurchaseOrderStatusInputSerializer

    @extend_schema(tags=["purchases"], request=PurchaseOrderStatusInputSerializer, responses=PurchaseOrderSerializer)
    def post(self, request, purchase_order_id):
        s = self.get_serializer(data=request.data)
        if not s.is_valid():
            return invalid(s.errors)

        return run_service(
            "updatePurchaseOrderStatus",
            purchase_order_service.update_purchase_order_status,
            purchase_order_id=purchase_order_id,
            status=s.validated_data["status"],
            user=request.user,
            serialize=_serialize,
        )


class PurchaseOrderPaymentView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = PaymentInputSerializer

    @extend_schema(tags=["purchases"], request=PaymentInputSerializer, responses=PurchaseOrderSerializer)
    def post(self, request, purchase_order_id):
        s = self.get_serializer(data=request.data)
        if not s.is_valid():
            return invalid(s.errors)

        return run_service(
            "recordPurchaseOrderPayment",
            purchase_order_service.record_purchase_order_payment,
            purchase_order_id=purchase_order_id,
            amount=s.validated_data["amount"],
            user=request.user,
            serialize=_serialize,
        )
