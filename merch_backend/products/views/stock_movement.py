# products/views/stock_movement.py

"""
STOCK MOVEMENT VIEWSET

Read-only ledger browsing with filters, plus the administrative
reversal (DELETE), which reverse-applies the movement's quantity.
"""

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import mixins, viewsets
from rest_framework.permissions import IsAuthenticated

from common.results import run_service
from products.models import StockMovement
from products.serializers import StockMovementSerializer
from products.services.stock_ledger import delete_movement
from users.permissions import IsManagerOrAdmin


@extend_schema(tags=["Stock Movements"])
class StockMovementViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = StockMovementSerializer
    lookup_value_regex = "[0-9a-f-]{36}"
    permission_classes = [IsAuthenticated]
    filterset_fields = ["product", "movement_type", "reason", "reference_type", "reference_id"]

    def get_permissions(self):
        if self.action == "destroy":
            return [IsAuthenticated(), IsManagerOrAdmin()]
        return [IsAuthenticated()]

    def get_queryset(self):
        return StockMovement.objects.select_related("product", "performed_by").order_by("-created_at")

    def destroy(self, request, *args, **kwargs):
        return run_service(
            "deleteStockMovement",
            delete_movement,
            movement_id=kwargs.get("pk"),
            user=request.user,
            serialize=lambda r: {
                "movement_id": str(r.movement_id),
                "product_id": str(r.product_id),
                "stock_before": r.stock_before,
                "stock_after": r.stock_after,
            },
        )
