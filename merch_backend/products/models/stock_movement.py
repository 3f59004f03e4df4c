# products/models/stock_movement.py

"""
INVENTORY LEDGER ENTRY

Immutable record of one change to a product's current_stock.

GUARANTEES:
- Append-only: created ONCE, never edited
- Instance delete() is refused; the only removal path is
  stock_ledger.delete_movement(), which reverse-applies the quantity
- stock_after == stock_before + quantity (snapshot of the balance)
- Signed quantity: positive for IN, negative for OUT, either for ADJUSTMENT
- unit_cost / landed_cost are captured only on receiving movements
"""

import uuid

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q

from .product import Product
from .references import ReferenceType, reference_from_row


class StockMovement(models.Model):
    class MovementType(models.TextChoices):
        IN = "in", "Stock In"
        OUT = "out", "Stock Out"
        ADJUSTMENT = "adjustment", "Adjustment"

    class Reason(models.TextChoices):
        SHIPMENT_RECEIVED = "shipment_received", "Shipment Received"
        SALE = "sale", "Sale"
        DAMAGE = "damage", "Damage"
        LOSS = "loss", "Loss"
        FOUND = "found", "Found"
        CORRECTION = "correction", "Correction"
        RETURN = "return", "Return"
        OTHER = "other", "Other"

    # Reasons a human may pick for a manual adjustment
    ADJUSTMENT_REASONS = (
        Reason.DAMAGE,
        Reason.LOSS,
        Reason.FOUND,
        Reason.CORRECTION,
        Reason.RETURN,
        Reason.OTHER,
    )

    REASON_TO_MOVEMENT = {
        Reason.SHIPMENT_RECEIVED: MovementType.IN,
        Reason.SALE: MovementType.OUT,
    }

    ReferenceType = ReferenceType

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    product = models.ForeignKey(
        Product, on_delete=models.PROTECT, related_name="stock_movements"
    )

    movement_type = models.CharField(max_length=10, choices=MovementType.choices)
    reason = models.CharField(max_length=20, choices=Reason.choices)

    quantity = models.IntegerField()
    stock_before = models.PositiveIntegerField()
    stock_after = models.PositiveIntegerField()

    unit_cost = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    landed_cost = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)

    reference_type = models.CharField(max_length=20, choices=ReferenceType.choices)
    reference_id = models.UUIDField(null=True, blank=True)

    notes = models.TextField(blank=True, default="")

    performed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="stock_movements",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["product", "created_at"], name="stockmove_product_created_idx"),
            models.Index(fields=["reference_type", "reference_id"], name="stockmove_reference_idx"),
            models.Index(fields=["reason"], name="stockmove_reason_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=~Q(quantity=0),
                name="stockmove_quantity_non_zero",
            ),
        ]

    def clean(self):
        if self.quantity is None or int(self.quantity) == 0:
            raise ValidationError("quantity must be non-zero")

        if self.movement_type == self.MovementType.IN and self.quantity < 0:
            raise ValidationError("IN movements must have a positive quantity")
        if self.movement_type == self.MovementType.OUT and self.quantity > 0:
            raise ValidationError("OUT movements must have a negative quantity")

        expected_type = self.REASON_TO_MOVEMENT.get(self.reason)
        if expected_type and self.movement_type != expected_type:
            raise ValidationError(
                f"{self.reason} requires movement_type={expected_type}"
            )

        if self.stock_after != self.stock_before + self.quantity:
            raise ValidationError("stock_after must equal stock_before + quantity")

        if self.reference_type == ReferenceType.MANUAL:
            if self.reference_id is not None:
                raise ValidationError("Manual movements cannot carry a reference_id")
        elif self.reference_id is None:
            raise ValidationError(f"{self.reference_type} movements require a reference_id")

        if self.reason != self.Reason.SHIPMENT_RECEIVED and (
            self.unit_cost is not None or self.landed_cost is not None
        ):
            raise ValidationError("Costs are captured only on receiving movements")

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("StockMovement records are immutable")
        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError(
            "StockMovement records are immutable; use the stock ledger to reverse one"
        )

    @property
    def reference(self):
        return reference_from_row(self.reference_type, self.reference_id)

    def __str__(self):
        product_name = getattr(self.product, "name", "Product")
        return f"{product_name} | {self.reason} | {self.quantity:+d}"
