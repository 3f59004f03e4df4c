# shipments/tests/test_shipment_service.py

from decimal import Decimal
from unittest import mock

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.test import TestCase

from common.exceptions import (
    DuplicateShipmentError,
    InvalidStateError,
    InvalidTransitionError,
    NotFoundError,
    PaymentError,
)
from products.models import Product, ReferenceType, ShipmentRef, StockMovement
from products.services.stock_ledger import ReceiveLine, post_bulk_receive, reconcile_product
from purchases.models import PurchaseOrder, Supplier
from purchases.services.purchase_order_service import create_purchase_order
from shipments.models import Shipment, ShippingCompany
from shipments.services import shipment_service
from shipments.services.delivery import process_shipment_delivery
from shipments.tests.factories import make_confirmed_purchase_order

User = get_user_model()


def walk_to_customs(shipment):
    for status in (Shipment.Status.IN_TRANSIT, Shipment.Status.CUSTOMS):
        shipment_service.update_shipment_status(shipment_id=shipment.pk, status=status)


class ShipmentCreationTests(TestCase):
    """
    GUARANTEES:
    - One shipment per purchase order
    - Booking a shipment forces the PO to SHIPPED
    - Only confirmed/producing POs can be shipped
    """

    def setUp(self):
        self.user = User.objects.create_user(email="buyer@example.com", password="password123")
        self.po = make_confirmed_purchase_order(user=self.user)

    def test_create_numbers_and_ships_po(self):
        shipment = shipment_service.create_shipment(
            purchase_order_id=self.po.pk,
            shipping_cost=Decimal("100.00"),
            customs_duty=Decimal("20.00"),
            other_fees=Decimal("5.00"),
            user=self.user,
        )

        self.assertRegex(shipment.shipment_number, r"^SHIP-\d{4}-001$")
        self.assertEqual(shipment.status, Shipment.Status.PENDING)
        self.assertEqual(shipment.total_cost, Decimal("125.00"))

        self.po.refresh_from_db()
        self.assertEqual(self.po.status, PurchaseOrder.Status.SHIPPED)

    def test_second_shipment_for_same_po_is_rejected(self):
        shipment_service.create_shipment(purchase_order_id=self.po.pk)

        with self.assertRaises(DuplicateShipmentError):
            shipment_service.create_shipment(purchase_order_id=self.po.pk)

        self.assertEqual(Shipment.objects.count(), 1)

    def test_draft_po_cannot_be_shipped(self):
        product = Product.objects.create(sku="CAP-X", name="Cap X")
        supplier = Supplier.objects.create(name="Draft Supplier")
        draft = create_purchase_order(
            supplier_id=supplier.pk,
            items=[{"product_id": product.pk, "quantity": 1, "unit_cost": "1.00"}],
        )

        with self.assertRaises(InvalidStateError):
            shipment_service.create_shipment(purchase_order_id=draft.pk)

        draft.refresh_from_db()
        self.assertEqual(draft.status, PurchaseOrder.Status.DRAFT)

    def test_unknown_shipping_company(self):
        with self.assertRaises(NotFoundError):
            shipment_service.create_shipment(
                purchase_order_id=self.po.pk,
                shipping_company_id="00000000-0000-0000-0000-000000000000",
            )

        self.po.refresh_from_db()
        self.assertEqual(self.po.status, PurchaseOrder.Status.CONFIRMED)

    def test_delete_pending_shipment_reverts_po(self):
        shipment = shipment_service.create_shipment(purchase_order_id=self.po.pk)

        shipment_service.delete_shipment(shipment_id=shipment.pk)

        self.assertFalse(Shipment.objects.exists())
        self.po.refresh_from_db()
        self.assertEqual(self.po.status, PurchaseOrder.Status.PRODUCING)

    def test_delete_in_transit_shipment_is_refused(self):
        shipment = shipment_service.create_shipment(purchase_order_id=self.po.pk)
        shipment_service.update_shipment_status(shipment_id=shipment.pk, status=Shipment.Status.IN_TRANSIT)

        with self.assertRaises(InvalidStateError):
            shipment_service.delete_shipment(shipment_id=shipment.pk)


class ShipmentLifecycleTests(TestCase):
    def setUp(self):
        self.po = make_confirmed_purchase_order()
        self.shipment = shipment_service.create_shipment(purchase_order_id=self.po.pk)

    def test_statuses_cannot_be_skipped(self):
        with self.assertRaises(InvalidTransitionError):
            shipment_service.update_shipment_status(
                shipment_id=self.shipment.pk, status=Shipment.Status.DELIVERED
            )

        self.shipment.refresh_from_db()
        self.assertEqual(self.shipment.status, Shipment.Status.PENDING)

    def test_statuses_cannot_move_backwards(self):
        shipment_service.update_shipment_status(
            shipment_id=self.shipment.pk, status=Shipment.Status.IN_TRANSIT
        )
        with self.assertRaises(InvalidTransitionError):
            shipment_service.update_shipment_status(
                shipment_id=self.shipment.pk, status=Shipment.Status.PENDING
            )

    def test_update_charges_recomputes_total(self):
        shipment = shipment_service.update_shipment(
            shipment_id=self.shipment.pk,
            shipping_cost="80.00",
            customs_duty="12.50",
            tracking_number="MSKU1234567",
        )

        self.assertEqual(shipment.total_cost, Decimal("92.50"))
        self.assertEqual(shipment.tracking_number, "MSKU1234567")

    def test_update_rejects_unknown_fields(self):
        with self.assertRaises(ValidationError):
            shipment_service.update_shipment(shipment_id=self.shipment.pk, status="delivered")


class ShipmentDeliveryTests(TestCase):
    """
    Delivery saga.

    GUARANTEES:
    - Delivery receives every PO line into stock at its allocated landed cost
    - PO becomes RECEIVED and received_qty reaches quantity
    - A failure anywhere rolls the whole unit back
    - Reprocessing a delivered shipment posts nothing new
    - Existing receipts never mark outstanding lines as received
    """

    def setUp(self):
        self.user = User.objects.create_user(email="warehouse@example.com", password="password123")
        self.po = make_confirmed_purchase_order(user=self.user)
        self.shipment = shipment_service.create_shipment(
            purchase_order_id=self.po.pk,
            shipping_cost=Decimal("100.00"),
            user=self.user,
        )
        walk_to_customs(self.shipment)
        self.product_a = Product.objects.get(sku="TEE-A")
        self.product_b = Product.objects.get(sku="TEE-B")

    def deliver(self):
        return shipment_service.update_shipment_status(
            shipment_id=self.shipment.pk,
            status=Shipment.Status.DELIVERED,
            user=self.user,
        )

    def test_delivery_receives_stock_at_landed_cost(self):
        result = self.deliver()

        self.assertEqual(result.shipment.status, Shipment.Status.DELIVERED)
        self.assertIsNotNone(result.shipment.actual_arrival)
        self.assertEqual(result.delivery.strategy, "weight")
        self.assertEqual(result.delivery.lines_posted, 2)

        self.product_a.refresh_from_db()
        self.product_b.refresh_from_db()
        self.assertEqual(self.product_a.current_stock, 10)
        self.assertEqual(self.product_b.current_stock, 10)
        # 100.00 freight split 1:3 by weight over 10 units each
        self.assertEqual(self.product_a.landed_cost, Decimal("7.50"))
        self.assertEqual(self.product_b.landed_cost, Decimal("12.50"))

        movements = StockMovement.objects.filter(
            reference_type=ReferenceType.SHIPMENT, reference_id=self.shipment.pk
        )
        self.assertEqual(movements.count(), 2)
        self.assertTrue(all(m.performed_by == self.user for m in movements))

        self.po.refresh_from_db()
        self.assertEqual(self.po.status, PurchaseOrder.Status.RECEIVED)
        self.assertTrue(all(item.received_qty == item.quantity for item in self.po.items.all()))

        self.assertTrue(reconcile_product(self.product_a).ok)
        self.assertTrue(reconcile_product(self.product_b).ok)

    def test_reprocessing_is_a_no_op(self):
        self.deliver()

        result = process_shipment_delivery(shipment_id=self.shipment.pk, user=self.user)

        self.assertTrue(result.already_received)
        self.assertEqual(result.lines_posted, 0)
        self.assertEqual(StockMovement.objects.count(), 2)
        self.product_a.refresh_from_db()
        self.assertEqual(self.product_a.current_stock, 10)
        self.assertEqual(self.product_a.landed_cost, Decimal("7.50"))

    def test_processing_undelivered_shipment_is_refused(self):
        with self.assertRaises(InvalidStateError):
            process_shipment_delivery(shipment_id=self.shipment.pk)

    def test_failure_rolls_back_whole_delivery(self):
        with mock.patch(
            "shipments.services.delivery.post_bulk_receive",
            side_effect=NotFoundError("Product not found"),
        ):
            with self.assertRaises(NotFoundError):
                self.deliver()

        self.shipment.refresh_from_db()
        self.assertEqual(self.shipment.status, Shipment.Status.CUSTOMS)
        self.assertIsNone(self.shipment.actual_arrival)

        self.po.refresh_from_db()
        self.assertEqual(self.po.status, PurchaseOrder.Status.SHIPPED)
        self.assertTrue(all(item.received_qty == 0 for item in self.po.items.all()))
        self.assertEqual(StockMovement.objects.count(), 0)

        # The same transition succeeds once the cause is gone
        self.deliver()
        self.product_a.refresh_from_db()
        self.assertEqual(self.product_a.current_stock, 10)

    def test_lines_already_received_are_skipped(self):
        self.po.items.filter(product=self.product_a).update(received_qty=10)

        result = self.deliver()

        self.assertEqual(result.delivery.lines_posted, 1)
        self.product_a.refresh_from_db()
        self.product_b.refresh_from_db()
        self.assertEqual(self.product_a.current_stock, 0)
        self.assertEqual(self.product_b.current_stock, 10)
        # allocation still spans every line, so B keeps its 75% share
        self.assertEqual(self.product_b.landed_cost, Decimal("12.50"))

    def test_receipt_posted_outside_delivery_blocks_marking_lines_received(self):
        post_bulk_receive(
            lines=[
                ReceiveLine(
                    product_id=self.product_a.pk,
                    quantity=10,
                    unit_cost=Decimal("5.00"),
                    landed_cost=Decimal("5.00"),
                )
            ],
            reference=ShipmentRef(id=self.shipment.pk),
        )

        with self.assertRaises(InvalidStateError):
            self.deliver()

        self.shipment.refresh_from_db()
        self.assertEqual(self.shipment.status, Shipment.Status.CUSTOMS)
        self.assertTrue(all(item.received_qty == 0 for item in self.po.items.all()))
        self.assertEqual(StockMovement.objects.count(), 1)
        self.product_b.refresh_from_db()
        self.assertEqual(self.product_b.current_stock, 0)

    def test_delivered_shipment_is_frozen(self):
        self.deliver()

        with self.assertRaises(InvalidStateError):
            shipment_service.update_shipment(shipment_id=self.shipment.pk, shipping_cost="1.00")
        with self.assertRaises(InvalidTransitionError):
            shipment_service.update_shipment_status(
                shipment_id=self.shipment.pk, status=Shipment.Status.CUSTOMS
            )


class ShipmentPaymentTests(TestCase):
    def setUp(self):
        self.po = make_confirmed_purchase_order()
        self.shipment = shipment_service.create_shipment(
            purchase_order_id=self.po.pk, shipping_cost=Decimal("100.00")
        )

    def test_partial_then_paid(self):
        shipment = shipment_service.record_shipment_payment(shipment_id=self.shipment.pk, amount="40.00")
        self.assertEqual(shipment.payment_status, "partial")

        shipment = shipment_service.record_shipment_payment(shipment_id=self.shipment.pk, amount="60.00")
        self.assertEqual(shipment.payment_status, "paid")
        self.assertEqual(shipment.paid_amount, Decimal("100.00"))

    def test_overpayment_is_rejected(self):
        with self.assertRaises(PaymentError):
            shipment_service.record_shipment_payment(shipment_id=self.shipment.pk, amount="100.01")

        self.shipment.refresh_from_db()
        self.assertEqual(self.shipment.paid_amount, Decimal("0.00"))

    def test_charges_cannot_drop_below_paid(self):
        shipment_service.record_shipment_payment(shipment_id=self.shipment.pk, amount="80.00")

        with self.assertRaises(ValidationError):
            shipment_service.update_shipment(shipment_id=self.shipment.pk, shipping_cost="50.00")


class ShippingEstimateTests(TestCase):
    def setUp(self):
        self.company = ShippingCompany.objects.create(
            name="Oceanic Freight",
            rate_per_kg=Decimal("2.50"),
            rate_per_cbm=Decimal("100.00"),
            min_charge=Decimal("50.00"),
        )

    def test_sea_is_charged_by_volume(self):
        quote = shipment_service.quote_shipping_cost(
            shipping_company_id=self.company.pk,
            method=Shipment.Method.SEA,
            total_volume=Decimal("1.5"),
        )
        self.assertEqual(quote["estimated_cost"], "150.00")

    def test_air_is_charged_by_weight_with_minimum(self):
        quote = shipment_service.quote_shipping_cost(
            shipping_company_id=self.company.pk,
            method=Shipment.Method.AIR,
            total_weight=Decimal("10"),
        )
        self.assertEqual(quote["estimated_cost"], "50.00")

        quote = shipment_service.quote_shipping_cost(
            shipping_company_id=self.company.pk,
            method=Shipment.Method.AIR,
            total_weight=Decimal("40"),
        )
        self.assertEqual(quote["estimated_cost"], "100.00")

    def test_unknown_company(self):
        with self.assertRaises(NotFoundError):
            shipment_service.quote_shipping_cost(
                shipping_company_id="00000000-0000-0000-0000-000000000000",
                method=Shipment.Method.AIR,
            )
