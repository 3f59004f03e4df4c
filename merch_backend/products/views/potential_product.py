# products/views/potential_product.py

"""
POTENTIAL PRODUCT VIEWSET

- list: the caller's own potential products (filter by status / supplier, ?search=)
- retrieve, create, update, delete, status, convert: service calls in the
  {success, data|error} envelope
- summary: counts per status
- convert is limited to staff roles; it creates a Product
"""

from __future__ import annotations

from django.db.models import Q
from drf_spectacular.utils import extend_schema
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated

from common.results import invalid, run_service, success
from products.models import PotentialProduct
from products.serializers import (
    ConvertToProductInputSerializer,
    PotentialProductInputSerializer,
    PotentialProductSerializer,
    PotentialProductStatusInputSerializer,
    ProductSerializer,
)
from products.services import potential_products
from users.permissions import IsStaffMember


@extend_schema(tags=["Potential products"])
class PotentialProductViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    serializer_class = PotentialProductSerializer
    permission_classes = [IsAuthenticated]
    lookup_value_regex = "[0-9a-f-]{36}"
    filterset_fields = ["status", "supplier"]

    def get_permissions(self):
        if self.action == "convert":
            return [IsAuthenticated(), IsStaffMember()]
        return [IsAuthenticated()]

    def get_queryset(self):
        qs = (
            PotentialProduct.objects.filter(created_by=self.request.user)
            .select_related("supplier", "product")
            .order_by("-created_at")
        )

        search = (self.request.query_params.get("search") or "").strip()
        if search:
            qs = qs.filter(Q(name__icontains=search) | Q(supplier_sku__icontains=search))

        return qs

    def _serialize(self, pp):
        return PotentialProductSerializer(
            potential_products.get_potential_product(pp.pk, user=self.request.user)
        ).data

    def retrieve(self, request, pk=None):
        return run_service(
            "getPotentialProduct",
            potential_products.get_potential_product,
            pk,
            user=request.user,
            serialize=lambda pp: PotentialProductSerializer(pp).data,
        )

    @extend_schema(request=PotentialProductInputSerializer, responses={201: PotentialProductSerializer})
    def create(self, request, *args, **kwargs):
        serializer = PotentialProductInputSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid(serializer.errors)
        v = dict(serializer.validated_data)

        return run_service(
            "createPotentialProduct",
            potential_products.create_potential_product,
            name=v.pop("name"),
            status=v.pop("status", PotentialProduct.Status.RESEARCHING),
            user=request.user,
            serialize=self._serialize,
            status_code=status.HTTP_201_CREATED,
            **v,
        )

    @extend_schema(request=PotentialProductInputSerializer, responses=PotentialProductSerializer)
    def partial_update(self, request, pk=None):
        serializer = PotentialProductInputSerializer(data=request.data, partial=True)
        if not serializer.is_valid():
            return invalid(serializer.errors)
        v = dict(serializer.validated_data)
        if "status" in v:
            return invalid({"status": ["Use the status endpoint to change status"]})

        return run_service(
            "updatePotentialProduct",
            potential_products.update_potential_product,
            potential_product_id=pk,
            user=request.user,
            serialize=self._serialize,
            **v,
        )

    def destroy(self, request, pk=None):
        return run_service(
            "deletePotentialProduct",
            potential_products.delete_potential_product,
            potential_product_id=pk,
            user=request.user,
        )

    @extend_schema(request=PotentialProductStatusInputSerializer, responses=PotentialProductSerializer)
    @action(detail=True, methods=["post"], url_path="status")
    def set_status(self, request, pk=None):
        serializer = PotentialProductStatusInputSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid(serializer.errors)

        return run_service(
            "updatePotentialProductStatus",
            potential_products.update_potential_product_status,
            potential_product_id=pk,
            status=serializer.validated_data["status"],
            user=request.user,
            serialize=self._serialize,
        )

    @extend_schema(request=ConvertToProductInputSerializer, responses={201: ProductSerializer})
    @action(detail=True, methods=["post"], url_path="convert")
    def convert(self, request, pk=None):
        serializer = ConvertToProductInputSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid(serializer.errors)

        return run_service(
            "convertToProduct",
            potential_products.convert_to_product,
            potential_product_id=pk,
            user=request.user,
            serialize=lambda product: ProductSerializer(product).data,
            status_code=status.HTTP_201_CREATED,
            **serializer.validated_data,
        )

    @action(detail=False, methods=["get"], url_path="summary")
    def summary(self, request):
        return success(potential_products.potential_product_counts(user=request.user))
