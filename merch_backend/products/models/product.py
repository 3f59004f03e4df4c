# products/models/product.py

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q


class Product(models.Model):
    """
    Represents a stocked merchandise item.

    STOCK MODEL (IMPORTANT):
    - current_stock is a running balance owned by the stock ledger
    - landed_cost is the weighted-average unit cost of stock on hand
    - Both are written ONLY by products.services.stock_ledger
      (queryset updates under a row lock); save() refuses to change them
    - opening_stock is fixed at creation, so:
        current_stock == opening_stock + sum(StockMovement.quantity)
    """

    class Status(models.TextChoices):
        ACTIVE = "ACTIVE", "Active"
        DISCONTINUED = "DISCONTINUED", "Discontinued"

    LEDGER_FIELDS = ("opening_stock", "current_stock", "landed_cost")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    sku = models.CharField(max_length=64, unique=True)
    name = models.CharField(max_length=255, db_index=True)
    category = models.CharField(max_length=100, blank=True, default="")
    brand = models.CharField(max_length=100, blank=True, default="")

    cost_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    wholesale_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    retail_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    weight_kg = models.DecimalField(
        max_digits=10,
        decimal_places=3,
        null=True,
        blank=True,
        help_text="Unit weight, used for weight-based landed cost allocation.",
    )

    reorder_level = models.PositiveIntegerField(default=10)
    moq = models.PositiveIntegerField(default=1, help_text="Minimum order quantity.")

    opening_stock = models.PositiveIntegerField(default=0)
    current_stock = models.PositiveIntegerField(default=0)
    landed_cost = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)

    warehouse_location = models.CharField(max_length=100, blank=True, default="")
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.ACTIVE)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        constraints = [
            models.CheckConstraint(
                condition=Q(current_stock__gte=0),
                name="product_current_stock_non_negative",
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.sku})"

    def clean(self):
        self.sku = (self.sku or "").strip().upper()
        if not self.sku:
            raise ValidationError({"sku": "SKU is required"})

        for field in ("cost_price", "wholesale_price", "retail_price"):
            value = getattr(self, field)
            if value is not None and Decimal(value) < 0:
                raise ValidationError({field: "Price cannot be negative"})

        if self.weight_kg is not None and Decimal(self.weight_kg) < 0:
            raise ValidationError({"weight_kg": "Weight cannot be negative"})

    @classmethod
    def from_db(cls, db, field_names, values):
        instance = super().from_db(db, field_names, values)
        instance._loaded_ledger = instance._ledger_values()
        return instance

    def refresh_from_db(self, *args, **kwargs):
        super().refresh_from_db(*args, **kwargs)
        self._loaded_ledger = self._ledger_values()

    def _ledger_values(self) -> dict:
        # deferred fields are simply absent from __dict__
        return {f: self.__dict__.get(f) for f in self.LEDGER_FIELDS}

    def sync_ledger_fields(self, **values):
        """
        Mirror a ledger write on this instance.
        The row itself is already updated by the stock ledger.
        """
        for name, value in values.items():
            setattr(self, name, value)
        self._loaded_ledger = self._ledger_values()

    def save(self, *args, **kwargs):
        if self._state.adding:
            self.current_stock = int(self.opening_stock or 0)
            self.full_clean()
            super().save(*args, **kwargs)
            self._loaded_ledger = self._ledger_values()
            return

        loaded = getattr(self, "_loaded_ledger", {})
        if any(self.__dict__.get(f) != value for f, value in loaded.items()):
            raise ValidationError(
                "Stock and landed cost are managed by the stock ledger"
            )

        self.full_clean()

        # Ledger columns are never part of a metadata UPDATE, so a post that
        # commits after this instance was loaded is not overwritten.
        update_fields = kwargs.pop("update_fields", None) or [
            f.name for f in self._meta.concrete_fields if not f.primary_key
        ]
        kwargs["update_fields"] = [f for f in update_fields if f not in self.LEDGER_FIELDS]
        super().save(*args, **kwargs)
        self.refresh_from_db(fields=list(self.LEDGER_FIELDS))

    @property
    def is_low_stock(self) -> bool:
        return 0 < int(self.current_stock or 0) <= int(self.reorder_level or 0)

    @property
    def is_out_of_stock(self) -> bool:
        return int(self.current_stock or 0) == 0

    @property
    def stock_value(self) -> Decimal:
        unit = self.landed_cost if self.landed_cost is not None else Decimal("0.00")
        return unit * int(self.current_stock or 0)
