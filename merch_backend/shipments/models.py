# shipments/models.py

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import F, Q

from common.money import money
from common.payments import PaymentStatus
from purchases.models import PurchaseOrder

User = settings.AUTH_USER_MODEL


class ShippingCompany(models.Model):
    """
    Freight forwarder with the rate card used for cost estimates.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=200, unique=True)
    contact_person = models.CharField(max_length=200, blank=True, default="")
    phone = models.CharField(max_length=50, blank=True, default="")
    email = models.EmailField(blank=True, default="")

    rate_per_kg = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    rate_per_cbm = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    min_charge = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]
        verbose_name_plural = "shipping companies"

    def __str__(self):
        return self.name


class Shipment(models.Model):
    """
    Inbound shipment for exactly one purchase order.

    Lifecycle (see shipments.services.shipment_lifecycle):
        pending -> in_transit -> customs -> delivered

    - Delivery posts the PO's items into the stock ledger.
    - total_cost = shipping_cost + customs_duty + other_fees
    - actual_arrival is set only on delivery.
    """

    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        IN_TRANSIT = "in_transit", "In Transit"
        CUSTOMS = "customs", "Customs"
        DELIVERED = "delivered", "Delivered"

    class Method(models.TextChoices):
        SEA = "sea", "Sea Freight"
        AIR = "air", "Air Freight"
        COURIER = "courier", "Courier"

    CHARGE_FIELDS = ("shipping_cost", "customs_duty", "other_fees")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    shipment_number = models.CharField(max_length=32, unique=True)

    purchase_order = models.OneToOneField(
        PurchaseOrder,
        on_delete=models.PROTECT,
        related_name="shipment",
    )
    shipping_company = models.ForeignKey(
        ShippingCompany,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="shipments",
    )

    method = models.CharField(max_length=10, choices=Method.choices, default=Method.SEA)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)

    tracking_number = models.CharField(max_length=100, blank=True, default="")
    departure_date = models.DateField(null=True, blank=True)
    estimated_arrival = models.DateField(null=True, blank=True)
    actual_arrival = models.DateTimeField(null=True, blank=True)

    total_weight = models.DecimalField(max_digits=12, decimal_places=3, null=True, blank=True)
    total_volume = models.DecimalField(max_digits=12, decimal_places=3, null=True, blank=True)

    shipping_cost = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    customs_duty = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    other_fees = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    total_cost = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))

    payment_status = models.CharField(
        max_length=20, choices=PaymentStatus.choices, default=PaymentStatus.PENDING
    )
    paid_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))

    notes = models.TextField(blank=True, default="")

    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="shipments_created",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(shipping_cost__gte=Decimal("0.00"))
                    & Q(customs_duty__gte=Decimal("0.00"))
                    & Q(other_fees__gte=Decimal("0.00"))
                ),
                name="shipment_charges_nonnegative",
            ),
            models.CheckConstraint(
                condition=Q(paid_amount__gte=Decimal("0.00")) & Q(paid_amount__lte=F("total_cost")),
                name="shipment_paid_within_total",
            ),
        ]
        indexes = [
            models.Index(fields=["status", "created_at"], name="shipment_status_created_idx"),
        ]

    def clean(self):
        if self.departure_date and self.estimated_arrival and self.estimated_arrival < self.departure_date:
            raise ValidationError(
                {"estimated_arrival": "estimated_arrival cannot be before departure_date"}
            )

        if self.status == self.Status.DELIVERED and not self.actual_arrival:
            raise ValidationError({"actual_arrival": "actual_arrival is required once delivered"})

        if self.status != self.Status.DELIVERED and self.actual_arrival:
            raise ValidationError({"actual_arrival": "actual_arrival is set only on delivery"})

        if money(self.paid_amount) > money(self.total_cost):
            raise ValidationError({"paid_amount": "Charges cannot drop below the amount already paid"})

    def save(self, *args, **kwargs):
        self.total_cost = money(
            money(self.shipping_cost) + money(self.customs_duty) + money(self.other_fees)
        )
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and set(update_fields) & set(self.CHARGE_FIELDS):
            kwargs["update_fields"] = list(set(update_fields) | {"total_cost"})

        self.full_clean(validate_unique=False)
        return super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.shipment_number} ({self.status})"
