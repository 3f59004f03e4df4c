# purchases/models.py

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import F, Q
from django.utils import timezone

from common.money import money
from common.payments import PaymentStatus
from products.models.product import Product

User = settings.AUTH_USER_MODEL


class Supplier(models.Model):
    """
    Supplier master.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=200, unique=True)
    contact_person = models.CharField(max_length=200, blank=True, default="")
    phone = models.CharField(max_length=50, blank=True, default="")
    email = models.EmailField(blank=True, default="")
    country = models.CharField(max_length=100, blank=True, default="")
    address = models.TextField(blank=True, default="")

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name


class PurchaseOrder(models.Model):
    """
    Procurement document sent to a supplier.

    Lifecycle (see purchases.services.purchase_order_lifecycle):
        draft <-> sent <-> confirmed <-> producing -> shipped -> received

    - Items are editable only while DRAFT.
    - SHIPPED / RECEIVED are driven by the linked Shipment.
    - totals: subtotal = sum(item.total_cost); total_cost = subtotal + shipping_estimate
    """

    class Status(models.TextChoices):
        DRAFT = "draft", "Draft"
        SENT = "sent", "Sent"
        CONFIRMED = "confirmed", "Confirmed"
        PRODUCING = "producing", "Producing"
        SHIPPED = "shipped", "Shipped"
        RECEIVED = "received", "Received"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    po_number = models.CharField(max_length=32, unique=True)

    supplier = models.ForeignKey(
        Supplier,
        on_delete=models.PROTECT,
        related_name="purchase_orders",
    )

    order_date = models.DateField(default=timezone.localdate)
    expected_date = models.DateField(null=True, blank=True)

    status = models.CharField(max_length=20, choices=Status.choices, default=Status.DRAFT)
    payment_status = models.CharField(
        max_length=20, choices=PaymentStatus.choices, default=PaymentStatus.PENDING
    )

    subtotal = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    shipping_estimate = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    total_cost = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    paid_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))

    notes = models.TextField(blank=True, default="")

    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="purchase_orders_created",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=Q(shipping_estimate__gte=Decimal("0.00")),
                name="purchase_order_shipping_estimate_nonnegative",
            ),
            models.CheckConstraint(
                condition=Q(paid_amount__gte=Decimal("0.00")) & Q(paid_amount__lte=F("total_cost")),
                name="purchase_order_paid_within_total",
            ),
        ]
        indexes = [
            models.Index(fields=["status", "created_at"], name="po_status_created_idx"),
        ]

    def clean(self):
        if self.expected_date and self.order_date and self.expected_date < self.order_date:
            raise ValidationError({"expected_date": "expected_date cannot be before order_date"})

        if money(self.paid_amount) > money(self.total_cost):
            raise ValidationError({"paid_amount": "Total cannot drop below the amount already paid"})

    def save(self, *args, **kwargs):
        self.full_clean(validate_unique=False)
        return super().save(*args, **kwargs)

    @property
    def is_editable(self) -> bool:
        return self.status == self.Status.DRAFT

    def __str__(self):
        return f"{self.po_number} ({self.status})"


class PurchaseOrderItem(models.Model):
    """
    Purchase order line.

    received_qty counts units already posted to the stock ledger.
    Only delivery processing advances it (to quantity).
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    purchase_order = models.ForeignKey(
        PurchaseOrder,
        on_delete=models.CASCADE,
        related_name="items",
    )
    product = models.ForeignKey(
        Product,
        on_delete=models.PROTECT,
        related_name="purchase_order_items",
    )

    quantity = models.PositiveIntegerField()
    unit_cost = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    total_cost = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    received_qty = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity__gt=0),
                name="purchase_order_item_quantity_gt_zero",
            ),
            models.CheckConstraint(
                condition=Q(unit_cost__gte=Decimal("0.00")),
                name="purchase_order_item_unit_cost_nonnegative",
            ),
            models.CheckConstraint(
                condition=Q(received_qty__lte=F("quantity")),
                name="purchase_order_item_received_within_quantity",
            ),
        ]

    def clean(self):
        if self.unit_cost is not None and self.unit_cost < Decimal("0.00"):
            raise ValidationError({"unit_cost": "unit_cost cannot be negative"})

    def save(self, *args, **kwargs):
        self.total_cost = money(Decimal(int(self.quantity or 0)) * money(self.unit_cost))
        self.full_clean()
        return super().save(*args, **kwargs)

    @property
    def outstanding_qty(self) -> int:
        return int(self.quantity or 0) - int(self.received_qty or 0)

    def __str__(self):
        product_name = getattr(self.product, "name", "Product")
        return f"{product_name} x {self.quantity}"
