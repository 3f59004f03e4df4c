# backend/urls.py
"""
PROJECT URLS

/api/
    auth/        JWT create / refresh, current user
    inventory/   products, stock movements, adjustments, alerts
    orders/      customer orders
    purchases/   suppliers, purchase orders
    shipments/   inbound shipments, shipping companies
    health/      DB connectivity check (public)
    schema/ docs/  OpenAPI

The Django admin is mounted at settings.ADMIN_PATH.
"""

from __future__ import annotations

import logging

from django.conf import settings
from django.contrib import admin
from django.db import connection
from django.db.utils import OperationalError
from django.urls import include, path
from django.views.generic import RedirectView
from drf_spectacular.utils import extend_schema, inline_serializer
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView
from rest_framework import serializers
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

logger = logging.getLogger("api")

MODULES = {
    "inventory": "/api/inventory/",
    "orders": "/api/orders/",
    "purchases": "/api/purchases/",
    "shipments": "/api/shipments/",
}


@extend_schema(
    responses=inline_serializer(
        "ApiIndex",
        fields={
            "name": serializers.CharField(),
            "auth": serializers.DictField(),
            "docs": serializers.CharField(),
            "modules": serializers.DictField(),
        },
    )
)
@api_view(["GET"])
@permission_classes([AllowAny])
def api_index(request):
    return Response(
        {
            "name": "Merchandise Inventory API",
            "auth": {
                "token": "/api/auth/jwt/create/",
                "refresh": "/api/auth/jwt/refresh/",
                "me": "/api/auth/me/",
            },
            "docs": "/api/docs/",
            "modules": MODULES,
        }
    )


@extend_schema(
    responses={
        200: inline_serializer("HealthOk", fields={"status": serializers.CharField(), "db": serializers.CharField()}),
        503: inline_serializer("HealthDown", fields={"status": serializers.CharField(), "db": serializers.CharField()}),
    }
)
@api_view(["GET"])
@permission_classes([AllowAny])
def health(request):
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
    except OperationalError:
        logger.warning("Health check: database unreachable", exc_info=True)
        return Response({"status": "degraded", "db": "down"}, status=503)
    return Response({"status": "ok", "db": "ok"})


api_patterns = [
    path("", api_index, name="api-index"),
    path("health/", health, name="health"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    path("docs/", SpectacularSwaggerView.as_view(url_name="schema"), name="swagger-ui"),
    path("auth/jwt/create/", TokenObtainPairView.as_view(), name="jwt-create"),
    path("auth/jwt/refresh/", TokenRefreshView.as_view(), name="jwt-refresh"),
    path("auth/", include("users.urls")),
    path("inventory/", include("products.urls")),
    path("orders/", include("orders.api.urls")),
    path("purchases/", include("purchases.api.urls")),
    path("shipments/", include("shipments.api.urls")),
]

urlpatterns = [
    path(settings.ADMIN_PATH, admin.site.urls),
    path("", RedirectView.as_view(url="/api/docs/", permanent=False)),
    path("api/", include(api_patterns)),
]
