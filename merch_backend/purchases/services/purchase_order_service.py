# purchases/services/purchase_order_service.py

"""
======================================================
PATH: purchases/services/purchase_order_service.py
======================================================
PURCHASE ORDER SERVICE

Operations:
- create_purchase_order      (PO-{year}-{seq}, items, totals)
- update_purchase_order      (DRAFT only: header + item replacement)
- update_purchase_order_status
- force_purchase_order_status (Shipment-driven: shipped / received / producing)
- delete_purchase_order      (DRAFT only)
- record_purchase_order_payment

Rules:
- Every mutation locks the PO row first (select_for_update).
- Status changes go through purchase_order_lifecycle.validate_transition().
- SHIPPED requires a linked Shipment (MissingShipmentError).
- RECEIVED is reached through shipment delivery, which posts the stock.
- PO services never touch Product stock; the stock ledger does.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from django.core.exceptions import ObjectDoesNotExist, ValidationError
from django.db import transaction

from common.exceptions import InvalidStateError, MissingShipmentError, NotFoundError
from common.money import money
from common.numbering import create_with_document_number
from common.payments import apply_payment
from products.models import Product
from purchases.models import PurchaseOrder, PurchaseOrderItem, Supplier
from purchases.services.purchase_order_lifecycle import validate_transition

logger = logging.getLogger("purchases")

PO_PREFIX = "PO"

EDITABLE_FIELDS = {"supplier_id", "order_date", "expected_date", "shipping_estimate", "notes"}


@dataclass(frozen=True)
class PurchaseOrderLine:
    product_id: object
    quantity: int
    unit_cost: Decimal


# ==========================================================
# HELPERS
# ==========================================================

def _lock_purchase_order(purchase_order_id) -> PurchaseOrder:
    po = PurchaseOrder.objects.select_for_update().filter(pk=purchase_order_id).first()
    if po is None:
        raise NotFoundError("Purchase order not found", purchase_order_id=str(purchase_order_id))
    return po


def _normalize_lines(items: Iterable) -> list:
    lines = []
    for raw in items or []:
        if isinstance(raw, PurchaseOrderLine):
            line = raw
        else:
            line = PurchaseOrderLine(
                product_id=raw.get("product_id"),
                quantity=raw.get("quantity"),
                unit_cost=raw.get("unit_cost"),
            )

        try:
            quantity = int(line.quantity)
        except (TypeError, ValueError):
            raise ValidationError({"items": "quantity must be an integer"})
        if quantity <= 0:
            raise ValidationError({"items": "quantity must be greater than zero"})

        unit_cost = money(line.unit_cost)
        if unit_cost < 0:
            raise ValidationError({"items": "unit_cost cannot be negative"})

        lines.append(PurchaseOrderLine(product_id=line.product_id, quantity=quantity, unit_cost=unit_cost))

    if not lines:
        raise ValidationError({"items": "At least one item is required"})

    product_ids = {str(l.product_id) for l in lines}
    found = {str(pk) for pk in Product.objects.filter(pk__in=product_ids).values_list("pk", flat=True)}
    missing = sorted(product_ids - found)
    if missing:
        raise NotFoundError("Product not found", product_ids=missing)

    return lines


def _replace_items(po: PurchaseOrder, lines: list) -> None:
    po.items.all().delete()
    for line in lines:
        PurchaseOrderItem.objects.create(
            purchase_order=po,
            product_id=line.product_id,
            quantity=line.quantity,
            unit_cost=line.unit_cost,
        )
    _recalculate_totals(po)


def _recalculate_totals(po: PurchaseOrder) -> None:
    subtotal = sum((item.total_cost for item in po.items.all()), Decimal("0.00"))
    po.subtotal = money(subtotal)
    po.total_cost = money(po.subtotal + money(po.shipping_estimate))


def _get_supplier(supplier_id) -> Supplier:
    supplier = Supplier.objects.filter(pk=supplier_id).first()
    if supplier is None:
        raise NotFoundError("Supplier not found", supplier_id=str(supplier_id))
    return supplier


def has_shipment(po: PurchaseOrder) -> bool:
    try:
        po.shipment
    except ObjectDoesNotExist:
        return False
    return True


# ==========================================================
# CREATE / UPDATE / DELETE
# ==========================================================

def create_purchase_order(
    *,
    supplier_id,
    items,
    shipping_estimate=Decimal("0.00"),
    order_date=None,
    expected_date=None,
    notes: str = "",
    user=None,
) -> PurchaseOrder:
    supplier = _get_supplier(supplier_id)
    lines = _normalize_lines(items)

    def _create(number: str) -> PurchaseOrder:
        po = PurchaseOrder(
            po_number=number,
            supplier=supplier,
            shipping_estimate=money(shipping_estimate),
            expected_date=expected_date,
            notes=(notes or "").strip(),
            created_by=user,
        )
        if order_date:
            po.order_date = order_date
        po.save()
        _replace_items(po, lines)
        po.save()
        return po

    po = create_with_document_number(
        model=PurchaseOrder,
        field="po_number",
        prefix=PO_PREFIX,
        create=_create,
    )

    logger.info(
        "Purchase order created",
        extra={"purchase_order_id": str(po.pk), "po_number": po.po_number, "total_cost": str(po.total_cost)},
    )
    return po


@transaction.atomic
def update_purchase_order(*, purchase_order_id, items=None, user=None, **fields) -> PurchaseOrder:
    po = _lock_purchase_order(purchase_order_id)

    if not po.is_editable:
        raise InvalidStateError(
            f"Cannot modify {po.status} purchase order; only draft orders are editable",
            purchase_order_id=str(po.pk),
            status=po.status,
        )

    unknown = set(fields) - EDITABLE_FIELDS
    if unknown:
        raise ValidationError({"fields": f"Unsupported fields: {', '.join(sorted(unknown))}"})

    if "supplier_id" in fields:
        po.supplier = _get_supplier(fields.pop("supplier_id"))
    if "shipping_estimate" in fields:
        fields["shipping_estimate"] = money(fields["shipping_estimate"])
    for name, value in fields.items():
        setattr(po, name, value)

    if items is not None:
        _replace_items(po, _normalize_lines(items))
    else:
        _recalculate_totals(po)

    po.save()
    logger.info("Purchase order updated", extra={"purchase_order_id": str(po.pk)})
    return po


@transaction.atomic
def delete_purchase_order(*, purchase_order_id, user=None) -> None:
    po = _lock_purchase_order(purchase_order_id)

    if po.status != PurchaseOrder.Status.DRAFT:
        raise InvalidStateError(
            "Only draft purchase orders can be deleted",
            purchase_order_id=str(po.pk),
            status=po.status,
        )

    po_number = po.po_number
    po.delete()
    logger.info("Purchase order deleted", extra={"po_number": po_number})


# ==========================================================
# STATUS
# ==========================================================

@transaction.atomic
def update_purchase_order_status(*, purchase_order_id, status: str, user=None) -> PurchaseOrder:
    po = _lock_purchase_order(purchase_order_id)
    validate_transition(purchase_order=po, target_status=status)

    if status == PurchaseOrder.Status.SHIPPED and not has_shipment(po):
        raise MissingShipmentError(
            "Create a shipment before marking the purchase order as shipped",
            purchase_order_id=str(po.pk),
        )

    if status == PurchaseOrder.Status.RECEIVED:
        shipment = po.shipment
        if shipment.status != shipment.Status.DELIVERED:
            raise InvalidStateError(
                "Purchase order is received when its shipment is delivered",
                purchase_order_id=str(po.pk),
                shipment_status=shipment.status,
            )

    previous = po.status
    po.status = status
    po.save(update_fields=["status", "updated_at"])

    logger.info(
        "Purchase order status changed",
        extra={"purchase_order_id": str(po.pk), "from_status": previous, "to_status": status},
    )
    return po


def force_purchase_order_status(*, purchase_order: PurchaseOrder, status: str) -> PurchaseOrder:
    """
    Shipment-driven status change, bypassing the manual transition table.
    Caller must hold the PO row lock inside its transaction.
    """
    previous = purchase_order.status
    purchase_order.status = status
    purchase_order.save(update_fields=["status", "updated_at"])

    logger.info(
        "Purchase order status forced",
        extra={"purchase_order_id": str(purchase_order.pk), "from_status": previous, "to_status": status},
    )
    return purchase_order


# ==========================================================
# PAYMENTS
# ==========================================================

@transaction.atomic
def record_purchase_order_payment(*, purchase_order_id, amount, user=None) -> PurchaseOrder:
    po = _lock_purchase_order(purchase_order_id)

    outcome = apply_payment(paid_amount=po.paid_amount, total=po.total_cost, amount=amount)
    po.paid_amount = outcome.paid_amount
    po.payment_status = outcome.payment_status
    po.save(update_fields=["paid_amount", "payment_status", "updated_at"])

    logger.info(
        "Purchase order payment recorded",
        extra={
            "purchase_order_id": str(po.pk),
            "amount": str(money(amount)),
            "paid_amount": str(po.paid_amount),
            "payment_status": po.payment_status,
        },
    )
    return po


def get_purchase_order(purchase_order_id) -> PurchaseOrder:
    po = (
        PurchaseOrder.objects.select_related("supplier")
        .prefetch_related("items__product")
        .filter(pk=purchase_order_id)
        .first()
    )
    if po is None:
        raise NotFoundError("Purchase order not found", purchase_order_id=str(purchase_order_id))
    return po
