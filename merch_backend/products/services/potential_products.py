# products/services/potential_products.py

"""
======================================================
PATH: products/services/potential_products.py
======================================================
POTENTIAL PRODUCT SERVICE

Operations:
- create_potential_product
- update_potential_product          (not once converted)
- delete_potential_product          (not once converted)
- update_potential_product_status   (researching / approved / rejected)
- convert_to_product                (approved -> converted, creates Product)
- estimate_margin
- potential_product_counts

Rules:
- A user only sees and changes the potential products they created.
- Conversion needs a supplier, an estimated cost and an estimated price.
- The new Product goes through Product.save(): opening_stock seeds
  current_stock, landed_cost stays empty until the first receipt.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Count

from common.exceptions import InvalidStateError, NotFoundError
from common.money import money, to_decimal
from products.models import PotentialProduct, Product
from purchases.models import Supplier

logger = logging.getLogger("inventory")

EDITABLE_FIELDS = {
    "name",
    "description",
    "category",
    "brand",
    "supplier_id",
    "supplier_sku",
    "source_url",
    "estimated_cost",
    "estimated_price",
    "moq",
    "weight_kg",
    "notes",
}

MANUAL_STATUSES = {
    PotentialProduct.Status.RESEARCHING,
    PotentialProduct.Status.APPROVED,
    PotentialProduct.Status.REJECTED,
}


@dataclass(frozen=True)
class MarginEstimate:
    margin_percent: Decimal
    profit_per_unit: Decimal
    total_investment: Optional[Decimal]


def estimate_margin(*, cost, price, moq=None) -> Optional[MarginEstimate]:
    """
    margin % = (price - cost) / cost * 100, one decimal place.
    None while either figure is missing.
    """
    if cost is None or price is None:
        return None
    cost = to_decimal(cost)
    price = to_decimal(price)
    if cost <= 0 or price <= 0:
        return None

    profit = price - cost
    margin = (profit / cost * Decimal("100")).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
    return MarginEstimate(
        margin_percent=margin,
        profit_per_unit=money(profit),
        total_investment=money(cost * int(moq)) if moq else None,
    )


# ==========================================================
# HELPERS
# ==========================================================

def _owned(user):
    return PotentialProduct.objects.filter(created_by=user)


def _lock_potential_product(potential_product_id, user) -> PotentialProduct:
    pp = _owned(user).select_for_update().filter(pk=potential_product_id).first()
    if pp is None:
        raise NotFoundError("Potential product not found", potential_product_id=str(potential_product_id))
    return pp


def _ensure_not_converted(pp: PotentialProduct, action: str) -> None:
    if pp.is_converted:
        raise InvalidStateError(
            f"Cannot {action} a converted potential product",
            potential_product_id=str(pp.pk),
        )


def _apply_fields(pp: PotentialProduct, fields: dict) -> None:
    unknown = set(fields) - EDITABLE_FIELDS
    if unknown:
        raise ValidationError({"fields": f"Unsupported fields: {', '.join(sorted(unknown))}"})

    if "supplier_id" in fields:
        supplier_id = fields.pop("supplier_id")
        supplier = None
        if supplier_id:
            supplier = Supplier.objects.filter(pk=supplier_id).first()
            if supplier is None:
                raise NotFoundError("Supplier not found", supplier_id=str(supplier_id))
        pp.supplier = supplier

    for name, value in fields.items():
        if isinstance(value, str):
            value = value.strip()
        setattr(pp, name, value)


def get_potential_product(potential_product_id, *, user) -> PotentialProduct:
    pp = _owned(user).select_related("supplier", "product").filter(pk=potential_product_id).first()
    if pp is None:
        raise NotFoundError("Potential product not found", potential_product_id=str(potential_product_id))
    return pp


# ==========================================================
# CREATE / UPDATE / DELETE
# ==========================================================

@transaction.atomic
def create_potential_product(*, name: str, user, status: str = PotentialProduct.Status.RESEARCHING, **fields) -> PotentialProduct:
    if status not in MANUAL_STATUSES:
        raise ValidationError({"status": "Potential products are converted through convert_to_product"})

    pp = PotentialProduct(name=name, status=status, created_by=user)
    _apply_fields(pp, fields)
    pp.full_clean()
    pp.save()

    logger.info(
        "Potential product created",
        extra={"potential_product_id": str(pp.pk), "status": pp.status},
    )
    return pp


@transaction.atomic
def update_potential_product(*, potential_product_id, user, **fields) -> PotentialProduct:
    pp = _lock_potential_product(potential_product_id, user)
    _ensure_not_converted(pp, "update")

    _apply_fields(pp, fields)
    pp.full_clean()
    pp.save()

    logger.info("Potential product updated", extra={"potential_product_id": str(pp.pk)})
    return pp


@transaction.atomic
def delete_potential_product(*, potential_product_id, user) -> None:
    pp = _lock_potential_product(potential_product_id, user)
    _ensure_not_converted(pp, "delete")

    pp_id = str(pp.pk)
    pp.delete()
    logger.info("Potential product deleted", extra={"potential_product_id": pp_id})


@transaction.atomic
def update_potential_product_status(*, potential_product_id, status: str, user) -> PotentialProduct:
    if status not in MANUAL_STATUSES:
        raise ValidationError({"status": "Status must be researching, approved or rejected"})

    pp = _lock_potential_product(potential_product_id, user)
    _ensure_not_converted(pp, "change the status of")

    previous = pp.status
    pp.status = status
    pp.save(update_fields=["status", "updated_at"])

    logger.info(
        "Potential product status changed",
        extra={"potential_product_id": str(pp.pk), "from_status": previous, "to_status": status},
    )
    return pp


# ==========================================================
# CONVERSION
# ==========================================================

@transaction.atomic
def convert_to_product(
    *,
    potential_product_id,
    sku: str,
    wholesale_price,
    user,
    opening_stock: int = 0,
    reorder_level: int = 10,
    warehouse_location: str = "",
) -> Product:
    pp = _lock_potential_product(potential_product_id, user)

    if pp.status != PotentialProduct.Status.APPROVED:
        raise InvalidStateError(
            "Only approved potential products can be converted",
            potential_product_id=str(pp.pk),
            status=pp.status,
        )
    if pp.supplier_id is None:
        raise InvalidStateError(
            "Assign a supplier before converting",
            potential_product_id=str(pp.pk),
        )
    if pp.estimated_cost is None or pp.estimated_price is None:
        raise InvalidStateError(
            "Both estimated cost and estimated price must be set before converting",
            potential_product_id=str(pp.pk),
        )

    sku = (sku or "").strip().upper()
    if Product.objects.filter(sku=sku).exists():
        raise ValidationError({"sku": "SKU already exists. Choose a different SKU."})
    if money(wholesale_price) <= 0:
        raise ValidationError({"wholesale_price": "Wholesale price must be positive"})

    product = Product.objects.create(
        sku=sku,
        name=pp.name,
        category=pp.category,
        brand=pp.brand,
        cost_price=money(pp.estimated_cost),
        wholesale_price=money(wholesale_price),
        retail_price=money(pp.estimated_price),
        weight_kg=pp.weight_kg,
        moq=pp.moq or 1,
        reorder_level=int(reorder_level),
        opening_stock=int(opening_stock),
        warehouse_location=(warehouse_location or "").strip(),
    )

    pp.status = PotentialProduct.Status.CONVERTED
    pp.product = product
    pp.save(update_fields=["status", "product", "updated_at"])

    logger.info(
        "Potential product converted",
        extra={
            "potential_product_id": str(pp.pk),
            "product_id": str(product.pk),
            "sku": product.sku,
            "opening_stock": product.opening_stock,
        },
    )
    return product


# ==========================================================
# READS
# ==========================================================

def potential_product_counts(*, user) -> dict:
    counts = {value: 0 for value in PotentialProduct.Status.values}
    for row in _owned(user).values("status").order_by().annotate(n=Count("id")):
        counts[row["status"]] = row["n"]
    counts["total"] = sum(counts.values())
    return counts
