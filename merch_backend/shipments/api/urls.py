# shipments/api/urls.py

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from shipments.api.views import ShipmentViewSet, ShippingCompanyViewSet

router = SimpleRouter()
router.register(r"companies", ShippingCompanyViewSet, basename="shipping-companies")
router.register(r"", ShipmentViewSet, basename="shipments")

urlpatterns = [
    path("", include(router.urls)),
]
