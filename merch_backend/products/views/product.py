# products/views/product.py

"""
PRODUCT VIEWSET

Purpose:
- Product catalogue (list / retrieve / create / update metadata).
- Stock history per product.
- Manual stock adjustment (manager/admin only).
- Inventory alerts and valuation reads.

RULES:
- current_stock / landed_cost are never written here; every stock change
  goes through products.services.stock_ledger.
- Mutating actions answer with the {success, data|error} envelope.
"""

from __future__ import annotations

from django.db.models import Q
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated

from common.results import invalid, run_service, success
from products.models import Product
from products.serializers import (
    ProductSerializer,
    StockAdjustmentInputSerializer,
    StockMovementSerializer,
)
from products.services import inventory
from products.services import stock_ledger
from users.permissions import IsManagerOrAdmin, IsStaffMember


@extend_schema(tags=["Products"])
class ProductViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    mixins.UpdateModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = ProductSerializer
    lookup_value_regex = "[0-9a-f-]{36}"
    permission_classes = [IsAuthenticated]
    filterset_fields = ["status", "category", "brand"]

    def get_permissions(self):
        if self.action == "adjust_stock":
            return [IsAuthenticated(), IsManagerOrAdmin()]
        if self.action in {"create", "update", "partial_update"}:
            return [IsAuthenticated(), IsStaffMember()]
        return [IsAuthenticated()]

    def get_queryset(self):
        qs = Product.objects.all().order_by("name")

        search = (self.request.query_params.get("search") or "").strip()
        if search:
            qs = qs.filter(Q(name__icontains=search) | Q(sku__icontains=search))

        return qs

    # -------------------------------------------------
    # STOCK HISTORY
    # -------------------------------------------------
    @extend_schema(
        parameters=[OpenApiParameter("limit", int, required=False)],
        responses=StockMovementSerializer(many=True),
    )
    @action(detail=True, methods=["get"], url_path="stock-movements")
    def stock_movements(self, request, pk=None):
        limit = request.query_params.get("limit") or None
        if limit is not None:
            try:
                limit = int(limit)
            except (TypeError, ValueError):
                return invalid({"limit": ["Must be an integer"]})

        return run_service(
            "getProductStockMovements",
            stock_ledger.get_product_stock_movements,
            product_id=pk,
            limit=limit,
            serialize=lambda rows: StockMovementSerializer(rows, many=True).data,
        )

    # -------------------------------------------------
    # MANUAL ADJUSTMENT
    # -------------------------------------------------
    @extend_schema(request=StockAdjustmentInputSerializer, responses=StockMovementSerializer)
    @action(detail=True, methods=["post"], url_path="adjust-stock")
    def adjust_stock(self, request, pk=None):
        serializer = StockAdjustmentInputSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid(serializer.errors)
        v = serializer.validated_data

        return run_service(
            "adjustStock",
            stock_ledger.adjust_stock,
            product_id=pk,
            quantity=v["quantity"],
            reason=v["reason"],
            notes=v["notes"],
            user=request.user,
            serialize=lambda result: StockMovementSerializer(result.movement).data,
            status_code=status.HTTP_201_CREATED,
        )

    # -------------------------------------------------
    # ALERTS / VALUATION
    # -------------------------------------------------
    @action(detail=False, methods=["get"], url_path="low-stock")
    def low_stock(self, request):
        rows = inventory.low_stock_products()
        return success(ProductSerializer(rows, many=True).data)

    @action(detail=False, methods=["get"], url_path="out-of-stock")
    def out_of_stock(self, request):
        rows = inventory.out_of_stock_products()
        return success(ProductSerializer(rows, many=True).data)

    @action(detail=False, methods=["get"], url_path="inventory-value")
    def inventory_value(self, request):
        data = inventory.inventory_value()
        data.update(inventory.stock_alert_counts())
        data["total_value"] = str(data["total_value"])
        return success(data)
