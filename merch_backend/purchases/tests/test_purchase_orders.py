# purchases/tests/test_purchase_orders.py

from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.test import TestCase
from django.utils import timezone
from rest_framework.test import APIClient

from common.exceptions import (
    InvalidStateError,
    InvalidTransitionError,
    MissingShipmentError,
    NotFoundError,
    PaymentError,
)
from products.models import Product, StockMovement
from purchases.models import PurchaseOrder, Supplier
from purchases.services import purchase_order_service as po_service
from shipments.services import shipment_service

User = get_user_model()


class PurchaseOrderFixtureMixin:
    def setUp(self):
        self.user = User.objects.create_user(email="buyer@example.com", password="password123")
        self.supplier = Supplier.objects.create(name="Guangzhou Textiles", country="CN")
        self.hoodie = Product.objects.create(sku="HOODIE-NVY-L", name="Navy Hoodie L")
        self.cap = Product.objects.create(sku="CAP-NVY", name="Navy Cap")

    def make_po(self, **extra):
        extra.setdefault(
            "items",
            [
                {"product_id": self.hoodie.pk, "quantity": 50, "unit_cost": "12.00"},
                {"product_id": self.cap.pk, "quantity": 100, "unit_cost": "3.50"},
            ],
        )
        return po_service.create_purchase_order(supplier_id=self.supplier.pk, user=self.user, **extra)

    def advance(self, po, *statuses):
        for status in statuses:
            po = po_service.update_purchase_order_status(purchase_order_id=po.pk, status=status)
        return po


class PurchaseOrderCreationTests(PurchaseOrderFixtureMixin, TestCase):
    """
    GUARANTEES:
    - POs are numbered PO-{year}-{seq} and start as DRAFT
    - total_cost = sum(line totals) + shipping_estimate
    - Creating a PO never touches stock
    """

    def test_create_computes_totals(self):
        po = self.make_po(shipping_estimate="25.00")

        self.assertEqual(po.po_number, f"PO-{timezone.localdate().year}-001")
        self.assertEqual(po.status, PurchaseOrder.Status.DRAFT)
        self.assertEqual(po.subtotal, Decimal("950.00"))
        self.assertEqual(po.total_cost, Decimal("975.00"))
        self.assertEqual(po.items.count(), 2)
        self.assertEqual(StockMovement.objects.count(), 0)

    def test_requires_items(self):
        with self.assertRaises(ValidationError):
            self.make_po(items=[])

    def test_rejects_zero_quantity(self):
        with self.assertRaises(ValidationError):
            self.make_po(items=[{"product_id": self.cap.pk, "quantity": 0, "unit_cost": "1.00"}])

    def test_unknown_supplier(self):
        with self.assertRaises(NotFoundError):
            po_service.create_purchase_order(
                supplier_id="00000000-0000-0000-0000-000000000000",
                items=[{"product_id": self.cap.pk, "quantity": 1, "unit_cost": "1.00"}],
            )

    def test_expected_date_before_order_date(self):
        today = timezone.localdate()
        with self.assertRaises(ValidationError):
            self.make_po(order_date=today, expected_date=today - timedelta(days=1))
        self.assertFalse(PurchaseOrder.objects.exists())


class PurchaseOrderLifecycleTests(PurchaseOrderFixtureMixin, TestCase):
    def test_forward_and_backward_steps(self):
        po = self.make_po()

        po = self.advance(po, "sent", "confirmed", "producing", "confirmed", "sent", "draft")

        self.assertEqual(po.status, PurchaseOrder.Status.DRAFT)

    def test_cannot_skip_to_confirmed(self):
        po = self.make_po()
        with self.assertRaises(InvalidTransitionError):
            self.advance(po, "confirmed")

    def test_shipped_requires_a_shipment(self):
        po = self.advance(self.make_po(), "sent", "confirmed", "producing")

        with self.assertRaises(MissingShipmentError):
            self.advance(po, "shipped")

        po.refresh_from_db()
        self.assertEqual(po.status, PurchaseOrder.Status.PRODUCING)

    def test_shipped_cannot_go_back(self):
        po = self.advance(self.make_po(), "sent", "confirmed")
        shipment_service.create_shipment(purchase_order_id=po.pk)
        po.refresh_from_db()
        self.assertEqual(po.status, PurchaseOrder.Status.SHIPPED)

        with self.assertRaises(InvalidTransitionError):
            self.advance(po, "producing")

    def test_received_waits_for_delivery(self):
        po = self.advance(self.make_po(), "sent", "confirmed")
        shipment_service.create_shipment(purchase_order_id=po.pk)

        with self.assertRaises(InvalidStateError):
            self.advance(po, "received")

        self.assertEqual(StockMovement.objects.count(), 0)


class PurchaseOrderEditingTests(PurchaseOrderFixtureMixin, TestCase):
    def test_draft_items_can_be_replaced(self):
        po = self.make_po()

        po = po_service.update_purchase_order(
            purchase_order_id=po.pk,
            items=[{"product_id": self.cap.pk, "quantity": 10, "unit_cost": "4.00"}],
            shipping_estimate="10.00",
        )

        self.assertEqual(po.items.count(), 1)
        self.assertEqual(po.total_cost, Decimal("50.00"))

    def test_only_drafts_are_editable(self):
        po = self.advance(self.make_po(), "sent")

        with self.assertRaises(InvalidStateError):
            po_service.update_purchase_order(purchase_order_id=po.pk, notes="Rush order")

    def test_only_drafts_are_deletable(self):
        po = self.advance(self.make_po(), "sent")
        with self.assertRaises(InvalidStateError):
            po_service.delete_purchase_order(purchase_order_id=po.pk)

        po = self.advance(po, "draft")
        po_service.delete_purchase_order(purchase_order_id=po.pk)
        self.assertFalse(PurchaseOrder.objects.exists())


class PurchaseOrderPaymentTests(PurchaseOrderFixtureMixin, TestCase):
    def test_deposit_then_balance(self):
        po = self.make_po()

        po = po_service.record_purchase_order_payment(purchase_order_id=po.pk, amount="285.00")
        self.assertEqual(po.payment_status, "partial")

        po = po_service.record_purchase_order_payment(purchase_order_id=po.pk, amount="665.00")
        self.assertEqual(po.payment_status, "paid")

        with self.assertRaises(PaymentError):
            po_service.record_purchase_order_payment(purchase_order_id=po.pk, amount="1.00")


class PurchaseOrderApiTests(PurchaseOrderFixtureMixin, TestCase):
    BASE = "/api/purchases/purchase-orders/"

    def setUp(self):
        super().setUp()
        self.client = APIClient()
        self.client.force_authenticate(self.user)

    def test_create_and_fetch(self):
        res = self.client.post(
            self.BASE,
            {
                "supplier_id": str(self.supplier.pk),
                "shipping_estimate": "15.00",
                "items": [{"product_id": str(self.cap.pk), "quantity": 20, "unit_cost": "2.25"}],
            },
            format="json",
        )

        self.assertEqual(res.status_code, 201)
        self.assertTrue(res.data["success"])
        data = res.data["data"]
        self.assertEqual(data["total_cost"], "60.00")
        self.assertEqual(data["supplier_name"], "Guangzhou Textiles")
        self.assertEqual(data["items"][0]["outstanding_qty"], 20)

        res = self.client.get(f"{self.BASE}{data['id']}/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["data"]["po_number"], data["po_number"])

    def test_expected_date_validation(self):
        res = self.client.post(
            self.BASE,
            {
                "supplier_id": str(self.supplier.pk),
                "order_date": "2026-05-10",
                "expected_date": "2026-05-01",
                "items": [{"product_id": str(self.cap.pk), "quantity": 1, "unit_cost": "1.00"}],
            },
            format="json",
        )
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["error"]["code"], "validation_error")

    def test_status_endpoint_reports_missing_shipment(self):
        po = self.advance(self.make_po(), "sent", "confirmed", "producing")

        res = self.client.post(f"{self.BASE}{po.pk}/status/", {"status": "shipped"}, format="json")

        self.assertEqual(res.status_code, 409)
        self.assertEqual(res.data["error"]["code"], "missing_shipment")

    def test_delete_non_draft_is_conflict(self):
        po = self.advance(self.make_po(), "sent")

        res = self.client.delete(f"{self.BASE}{po.pk}/")

        self.assertEqual(res.status_code, 409)
        self.assertEqual(res.data["error"]["code"], "invalid_state")

    def test_payment_endpoint(self):
        po = self.make_po()
        res = self.client.post(f"{self.BASE}{po.pk}/payments/", {"amount": "100.00"}, format="json")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["data"]["paid_amount"], "100.00")

    def test_suppliers(self):
        res = self.client.post("/api/purchases/suppliers/", {"name": "Dhaka Knitwear"}, format="json")
        self.assertEqual(res.status_code, 201)

        res = self.client.get("/api/purchases/suppliers/")
        self.assertEqual(
            [row["name"] for row in res.data],
            ["Dhaka Knitwear", "Guangzhou Textiles"],
        )
