# orders/models.py

"""
CUSTOMER ORDERS

Order lifecycle (see orders.services.order_lifecycle):
    pending -> confirmed -> packed -> shipped -> delivered
    any non-terminal except delivered -> cancelled

Stock is deducted on confirmation and returned on cancellation through
the stock ledger; this module never touches Product.current_stock.
"""

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import F, Q

from common.money import money
from common.payments import PaymentStatus
from products.models import Product

User = settings.AUTH_USER_MODEL


class Order(models.Model):
    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        CONFIRMED = "confirmed", "Confirmed"
        PACKED = "packed", "Packed"
        SHIPPED = "shipped", "Shipped"
        DELIVERED = "delivered", "Delivered"
        CANCELLED = "cancelled", "Cancelled"

    class OrderType(models.TextChoices):
        ONLINE = "online", "Online"
        WHOLESALE = "wholesale", "Wholesale"
        RETAIL = "retail", "Retail"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order_number = models.CharField(max_length=32, unique=True)
    order_type = models.CharField(max_length=20, choices=OrderType.choices, default=OrderType.ONLINE)

    customer_name = models.CharField(max_length=200)
    customer_phone = models.CharField(max_length=50, blank=True, default="")
    customer_email = models.EmailField(blank=True, default="")
    company_name = models.CharField(max_length=200, blank=True, default="")
    shipping_address = models.TextField(blank=True, default="")
    city = models.CharField(max_length=100, blank=True, default="")

    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    payment_status = models.CharField(
        max_length=20, choices=PaymentStatus.choices, default=PaymentStatus.PENDING
    )

    subtotal = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    shipping_fee = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    discount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    total = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    paid_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))

    notes = models.TextField(blank=True, default="")

    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="orders_created",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=Q(total__gte=Decimal("0.00")),
                name="order_total_nonnegative",
            ),
            models.CheckConstraint(
                condition=Q(paid_amount__gte=Decimal("0.00")) & Q(paid_amount__lte=F("total")),
                name="order_paid_within_total",
            ),
        ]
        indexes = [
            models.Index(fields=["status", "created_at"], name="order_status_created_idx"),
        ]

    def clean(self):
        if not (self.customer_name or "").strip():
            raise ValidationError({"customer_name": "customer_name is required"})

        if self.order_type == self.OrderType.WHOLESALE and not (self.company_name or "").strip():
            raise ValidationError({"company_name": "Company name is required for wholesale orders"})

        for name in ("shipping_fee", "discount"):
            if getattr(self, name) is not None and getattr(self, name) < Decimal("0.00"):
                raise ValidationError({name: f"{name} cannot be negative"})

        if self.total is not None and self.total < Decimal("0.00"):
            raise ValidationError({"discount": "Discount cannot exceed subtotal plus shipping"})

        if money(self.paid_amount) > money(self.total):
            raise ValidationError({"paid_amount": "Total cannot drop below the amount already paid"})

    def recalculate_totals(self) -> None:
        self.subtotal = money(sum((item.total_price for item in self.items.all()), Decimal("0.00")))
        self.total = money(self.subtotal + money(self.shipping_fee) - money(self.discount))

    def save(self, *args, **kwargs):
        self.full_clean(validate_unique=False)
        return super().save(*args, **kwargs)

    @property
    def is_editable(self) -> bool:
        return self.status == self.Status.PENDING

    @property
    def is_wholesale(self) -> bool:
        return self.order_type == self.OrderType.WHOLESALE

    def __str__(self):
        return f"{self.order_number} ({self.status})"


class OrderItem(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="items")
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name="order_items")

    quantity = models.PositiveIntegerField()
    unit_price = models.DecimalField(max_digits=14, decimal_places=2)
    total_price = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity__gt=0),
                name="order_item_quantity_gt_zero",
            ),
            models.CheckConstraint(
                condition=Q(unit_price__gte=Decimal("0.00")),
                name="order_item_unit_price_nonnegative",
            ),
        ]

    def save(self, *args, **kwargs):
        self.total_price = money(Decimal(int(self.quantity or 0)) * money(self.unit_price))
        self.full_clean()
        return super().save(*args, **kwargs)

    def __str__(self):
        product_name = getattr(self.product, "name", "Product")
        return f"{product_name} x {self.quantity}"
