# products/models/potential_product.py

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models


class PotentialProduct(models.Model):
    """
    A sourcing idea that may become a stocked Product.

    Lifecycle:
        researching <-> approved <-> rejected   (free moves, set by staff)
        approved -> converted                   (convert_to_product only)

    - CONVERTED rows are a historical record: no edits, no status change,
      no deletion.
    - Conversion creates the Product through Product.save(), so opening
      stock seeds the ledger like any other new product.
    """

    class Status(models.TextChoices):
        RESEARCHING = "researching", "Researching"
        APPROVED = "approved", "Approved"
        REJECTED = "rejected", "Rejected"
        CONVERTED = "converted", "Converted"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=200)
    description = models.TextField(blank=True, default="")
    category = models.CharField(max_length=100, blank=True, default="")
    brand = models.CharField(max_length=100, blank=True, default="")

    supplier = models.ForeignKey(
        "purchases.Supplier",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="potential_products",
    )
    supplier_sku = models.CharField(max_length=100, blank=True, default="")
    source_url = models.URLField(blank=True, default="")

    estimated_cost = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    estimated_price = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    moq = models.PositiveIntegerField(null=True, blank=True)
    weight_kg = models.DecimalField(max_digits=10, decimal_places=3, null=True, blank=True)

    notes = models.TextField(blank=True, default="")
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.RESEARCHING)

    product = models.OneToOneField(
        "products.Product",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="source_potential_product",
    )

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="potential_products",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.name} ({self.status})"

    def clean(self):
        self.name = (self.name or "").strip()
        if len(self.name) < 2:
            raise ValidationError({"name": "Name must be at least 2 characters"})

        for field in ("estimated_cost", "estimated_price", "weight_kg"):
            value = getattr(self, field)
            if value is not None and Decimal(value) <= 0:
                raise ValidationError({field: "Must be greater than zero"})

    @property
    def is_converted(self) -> bool:
        return self.status == self.Status.CONVERTED
