# orders/tests/test_order_service.py

from decimal import Decimal
from unittest import mock

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.test import TestCase
from django.utils import timezone

from common.exceptions import (
    InsufficientStockError,
    InvalidStateError,
    InvalidTransitionError,
    NotFoundError,
    PaymentError,
)
from orders.models import Order
from orders.services import order_service
from orders.services.order_lifecycle import can_transition
from products.models import Product, ReferenceType, StockMovement
from products.services.stock_ledger import reconcile_product

User = get_user_model()


class OrderTestMixin:
    def setUp(self):
        self.user = User.objects.create_user(email="sales@example.com", password="password123")
        self.jersey = Product.objects.create(
            sku="JERSEY-AWAY-M",
            name="Away Jersey M",
            opening_stock=100,
            retail_price=Decimal("50.00"),
            wholesale_price=Decimal("35.00"),
        )
        self.scarf = Product.objects.create(
            sku="SCARF-CLUB",
            name="Club Scarf",
            opening_stock=5,
            retail_price=Decimal("15.00"),
            wholesale_price=Decimal("10.00"),
        )

    def make_order(self, *, items=None, status=Order.Status.PENDING, **header):
        header.setdefault("customer_name", "Ada Obi")
        if items is None:
            items = [{"product_id": self.jersey.pk, "quantity": 30}]
        return order_service.create_order(items=items, status=status, user=self.user, **header)


class OrderCreationTests(OrderTestMixin, TestCase):
    """
    GUARANTEES:
    - Orders are numbered ORD-{year}-{seq}
    - Prices default to retail, or wholesale for wholesale orders
    - Totals = subtotal + shipping_fee - discount
    """

    def test_pending_order_has_number_and_totals(self):
        order = self.make_order(shipping_fee="10.00", discount="5.00")

        year = timezone.localdate().year
        self.assertEqual(order.order_number, f"ORD-{year}-001")
        self.assertEqual(order.status, Order.Status.PENDING)
        self.assertEqual(order.subtotal, Decimal("1500.00"))
        self.assertEqual(order.total, Decimal("1505.00"))
        self.assertEqual(order.payment_status, "pending")

        self.jersey.refresh_from_db()
        self.assertEqual(self.jersey.current_stock, 100)

    def test_sequence_increments(self):
        first = self.make_order()
        second = self.make_order()
        self.assertEqual(int(second.order_number.rsplit("-", 1)[1]), int(first.order_number.rsplit("-", 1)[1]) + 1)

    def test_wholesale_orders_use_wholesale_price(self):
        order = self.make_order(order_type=Order.OrderType.WHOLESALE, company_name="Fan Shop Ltd")
        self.assertEqual(order.items.get().unit_price, Decimal("35.00"))

    def test_explicit_unit_price_wins(self):
        order = self.make_order(items=[{"product_id": self.jersey.pk, "quantity": 1, "unit_price": "42.50"}])
        self.assertEqual(order.total, Decimal("42.50"))

    def test_wholesale_requires_company(self):
        with self.assertRaises(ValidationError):
            self.make_order(order_type=Order.OrderType.WHOLESALE)
        self.assertFalse(Order.objects.exists())

    def test_discount_cannot_exceed_total(self):
        with self.assertRaises(ValidationError):
            self.make_order(discount="5000.00")

    def test_unknown_product(self):
        with self.assertRaises(NotFoundError):
            self.make_order(items=[{"product_id": "00000000-0000-0000-0000-000000000000", "quantity": 1}])

    def test_create_confirmed_deducts_stock(self):
        order = self.make_order(status=Order.Status.CONFIRMED)

        self.assertEqual(order.status, Order.Status.CONFIRMED)
        self.jersey.refresh_from_db()
        self.assertEqual(self.jersey.current_stock, 70)

    def test_create_confirmed_without_stock_persists_nothing(self):
        with self.assertRaises(InsufficientStockError):
            self.make_order(items=[{"product_id": self.scarf.pk, "quantity": 6}], status=Order.Status.CONFIRMED)

        self.assertFalse(Order.objects.exists())
        self.scarf.refresh_from_db()
        self.assertEqual(self.scarf.current_stock, 5)

    def test_other_initial_states_are_refused(self):
        with self.assertRaises(InvalidStateError):
            self.make_order(status=Order.Status.SHIPPED)

    def test_number_collision_is_retried(self):
        existing = self.make_order()
        year = timezone.localdate().year

        with mock.patch(
            "common.numbering.next_document_number",
            side_effect=[existing.order_number, f"ORD-{year}-777"],
        ):
            order = self.make_order()

        self.assertEqual(order.order_number, f"ORD-{year}-777")
        self.assertEqual(Order.objects.count(), 2)


class OrderStockEffectTests(OrderTestMixin, TestCase):
    """
    Ledger side effects of status changes.

    GUARANTEES:
    - Confirm posts one SALE per item, cancel after confirm posts one RETURN per item
    - A failed confirm leaves status and stock untouched
    - Stock invariant holds after every step
    """

    def test_confirm_then_cancel_round_trip(self):
        order = self.make_order()

        order_service.update_order_status(order_id=order.pk, status=Order.Status.CONFIRMED, user=self.user)
        self.jersey.refresh_from_db()
        self.assertEqual(self.jersey.current_stock, 70)

        order_service.cancel_order(order_id=order.pk, user=self.user)
        self.jersey.refresh_from_db()
        self.assertEqual(self.jersey.current_stock, 100)

        movements = StockMovement.objects.filter(reference_type=ReferenceType.ORDER, reference_id=order.pk)
        self.assertEqual(
            sorted(movements.values_list("reason", "quantity")),
            [("return", 30), ("sale", -30)],
        )
        self.assertTrue(reconcile_product(self.jersey).ok)

    def test_insufficient_stock_leaves_order_pending(self):
        order = self.make_order(
            items=[
                {"product_id": self.jersey.pk, "quantity": 10},
                {"product_id": self.scarf.pk, "quantity": 6},
            ]
        )

        with self.assertRaises(InsufficientStockError) as ctx:
            order_service.update_order_status(order_id=order.pk, status=Order.Status.CONFIRMED)

        self.assertEqual(ctx.exception.details["product_name"], "Club Scarf")
        order.refresh_from_db()
        self.assertEqual(order.status, Order.Status.PENDING)
        self.jersey.refresh_from_db()
        self.assertEqual(self.jersey.current_stock, 100)
        self.assertEqual(StockMovement.objects.count(), 0)

    def test_cancel_pending_posts_nothing(self):
        order = self.make_order()

        order_service.cancel_order(order_id=order.pk)

        order.refresh_from_db()
        self.assertEqual(order.status, Order.Status.CANCELLED)
        self.assertEqual(StockMovement.objects.count(), 0)

    def test_cancel_after_shipping_returns_stock(self):
        order = self.make_order(status=Order.Status.CONFIRMED)
        for status in (Order.Status.PACKED, Order.Status.SHIPPED):
            order_service.update_order_status(order_id=order.pk, status=status)

        order_service.cancel_order(order_id=order.pk)

        self.jersey.refresh_from_db()
        self.assertEqual(self.jersey.current_stock, 100)

    def test_statuses_cannot_be_skipped(self):
        order = self.make_order()

        with self.assertRaises(InvalidTransitionError):
            order_service.update_order_status(order_id=order.pk, status=Order.Status.SHIPPED)

        order.refresh_from_db()
        self.assertEqual(order.status, Order.Status.PENDING)

    def test_terminal_states_are_final(self):
        self.assertFalse(can_transition(from_status=Order.Status.DELIVERED, to_status=Order.Status.CANCELLED))
        self.assertFalse(can_transition(from_status=Order.Status.CANCELLED, to_status=Order.Status.PENDING))

        order = self.make_order()
        order_service.cancel_order(order_id=order.pk)
        with self.assertRaises(InvalidTransitionError):
            order_service.update_order_status(order_id=order.pk, status=Order.Status.CONFIRMED)


class OrderEditingTests(OrderTestMixin, TestCase):
    def test_items_editable_only_while_pending(self):
        order = self.make_order()

        order = order_service.update_order(
            order_id=order.pk,
            items=[{"product_id": self.scarf.pk, "quantity": 2}],
        )
        self.assertEqual(order.total, Decimal("30.00"))

        order_service.update_order_status(order_id=order.pk, status=Order.Status.CONFIRMED)
        with self.assertRaises(InvalidStateError):
            order_service.update_order(order_id=order.pk, items=[{"product_id": self.jersey.pk, "quantity": 1}])

    def test_header_editable_after_confirm(self):
        order = self.make_order(status=Order.Status.CONFIRMED)

        order = order_service.update_order(order_id=order.pk, city="Lagos", shipping_fee="5.00")

        self.assertEqual(order.city, "Lagos")
        self.assertEqual(order.total, Decimal("1505.00"))

    def test_terminal_orders_are_frozen(self):
        order = self.make_order()
        order_service.cancel_order(order_id=order.pk)

        with self.assertRaises(InvalidStateError):
            order_service.update_order(order_id=order.pk, notes="too late")

    def test_unknown_header_fields_are_rejected(self):
        order = self.make_order()
        with self.assertRaises(ValidationError):
            order_service.update_order(order_id=order.pk, status="delivered")

    def test_delete_rules(self):
        pending = self.make_order()
        order_service.delete_order(order_id=pending.pk)
        self.assertFalse(Order.objects.filter(pk=pending.pk).exists())

        confirmed = self.make_order(status=Order.Status.CONFIRMED)
        with self.assertRaises(InvalidStateError):
            order_service.delete_order(order_id=confirmed.pk)

        order_service.cancel_order(order_id=confirmed.pk)
        order_service.delete_order(order_id=confirmed.pk)
        self.assertFalse(Order.objects.exists())

    def test_missing_order(self):
        with self.assertRaises(NotFoundError):
            order_service.get_order("00000000-0000-0000-0000-000000000000")


class OrderPaymentTests(OrderTestMixin, TestCase):
    def test_payments_accumulate(self):
        order = self.make_order(items=[{"product_id": self.scarf.pk, "quantity": 2}])

        order = order_service.record_order_payment(order_id=order.pk, amount="10.00")
        self.assertEqual(order.payment_status, "partial")

        order = order_service.record_order_payment(order_id=order.pk, amount="20.00")
        self.assertEqual(order.payment_status, "paid")
        self.assertEqual(order.paid_amount, Decimal("30.00"))

        with self.assertRaises(PaymentError):
            order_service.record_order_payment(order_id=order.pk, amount="0.01")

    def test_cancelled_orders_take_no_payments(self):
        order = self.make_order()
        order_service.cancel_order(order_id=order.pk)

        with self.assertRaises(PaymentError):
            order_service.record_order_payment(order_id=order.pk, amount="1.00")

    def test_total_cannot_drop_below_paid(self):
        order = self.make_order(items=[{"product_id": self.scarf.pk, "quantity": 2}])
        order_service.record_order_payment(order_id=order.pk, amount="25.00")

        with self.assertRaises(ValidationError):
            order_service.update_order(order_id=order.pk, discount="10.00")

        order.refresh_from_db()
        self.assertEqual(order.total, Decimal("30.00"))
