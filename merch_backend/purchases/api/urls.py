# purchases/api/urls.py

from django.urls import path

from purchases.api.views import (
    PurchaseOrderDetailView,
    PurchaseOrderListCreateView,
    PurchaseOrderPaymentView,
    PurchaseOrderStatusView,
    SupplierListCreateView,
)

urlpatterns = [
    path("suppliers/", SupplierListCreateView.as_view(), name="purchase-suppliers"),
    path(
        "purchase-orders/",
        PurchaseOrderListCreateView.as_view(),
        name="purchase-orders",
    ),
    path(
        "purchase-orders/<uuid:purchase_order_id>/",
        PurchaseOrderDetailView.as_view(),
        name="purchase-order-detail",
    ),
    path(
        "purchase-orders/<uuid:purchase_order_id>/status/",
        PurchaseOrderStatusView.as_view(),
        name="purchase-order-status",
    ),
    path(
        "purchase-orders/<uuid:purchase_order_id>/payments/",
        PurchaseOrderPaymentView.as_view(),
        name="purchase-order-payments",
    ),
]
