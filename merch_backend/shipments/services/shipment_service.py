# shipments/services/shipment_service.py

"""
======================================================
PATH: shipments/services/shipment_service.py
======================================================
SHIPMENT SERVICE

Operations:
- create_shipment          (PO must be confirmed/producing, one shipment per PO;
                            PO is forced to SHIPPED)
- update_shipment          (details + charges; refused once delivered)
- update_shipment_status   (linear; DELIVERED runs the delivery saga)
- delete_shipment          (PENDING only; PO reverted to PRODUCING)
- record_shipment_payment
- estimate_shipping_cost   (rate card of a shipping company)
- quote_shipping_cost      (estimate by shipping company id)
- get_shipment

Delivery saga (one transaction):
    shipment -> delivered (actual_arrival = now)
    PO       -> received
    allocate charges, bulk receive outstanding quantities, advance received_qty
If any step fails the whole unit rolls back and the shipment keeps its
previous status; the error propagates to the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.utils import timezone

from common.exceptions import (
    DuplicateShipmentError,
    InvalidStateError,
    NotFoundError,
)
from common.money import money, to_decimal
from common.numbering import create_with_document_number
from common.payments import apply_payment
from purchases.models import PurchaseOrder
from purchases.services.purchase_order_lifecycle import SHIPPABLE_STATES
from purchases.services.purchase_order_service import (
    force_purchase_order_status,
    has_shipment,
)
from shipments.models import Shipment, ShippingCompany
from shipments.services.delivery import DeliveryResult, receive_shipment_items
from shipments.services.shipment_lifecycle import validate_transition

logger = logging.getLogger("shipments")

SHIPMENT_PREFIX = "SHIP"

EDITABLE_FIELDS = {
    "shipping_company_id",
    "method",
    "tracking_number",
    "departure_date",
    "estimated_arrival",
    "total_weight",
    "total_volume",
    "shipping_cost",
    "customs_duty",
    "other_fees",
    "notes",
}


@dataclass(frozen=True)
class ShipmentTransitionResult:
    shipment: Shipment
    delivery: Optional[DeliveryResult] = None


# ==========================================================
# HELPERS
# ==========================================================

def _lock_shipment(shipment_id) -> Shipment:
    shipment = Shipment.objects.select_for_update().filter(pk=shipment_id).first()
    if shipment is None:
        raise NotFoundError("Shipment not found", shipment_id=str(shipment_id))
    return shipment


def _lock_purchase_order(purchase_order_id) -> PurchaseOrder:
    po = PurchaseOrder.objects.select_for_update().filter(pk=purchase_order_id).first()
    if po is None:
        raise NotFoundError("Purchase order not found", purchase_order_id=str(purchase_order_id))
    return po


def _get_shipping_company(shipping_company_id) -> Optional[ShippingCompany]:
    if not shipping_company_id:
        return None
    company = ShippingCompany.objects.filter(pk=shipping_company_id).first()
    if company is None:
        raise NotFoundError("Shipping company not found", shipping_company_id=str(shipping_company_id))
    return company


# ==========================================================
# COST ESTIMATE
# ==========================================================

def estimate_shipping_cost(*, company: ShippingCompany, method: str, total_weight=None, total_volume=None) -> Decimal:
    """
    Sea freight is charged by volume, everything else by weight,
    never below the company's minimum charge.
    """
    cost = Decimal("0")

    if method == Shipment.Method.SEA and total_volume is not None and company.rate_per_cbm is not None:
        cost = to_decimal(total_volume) * company.rate_per_cbm
    elif total_weight is not None and company.rate_per_kg is not None:
        cost = to_decimal(total_weight) * company.rate_per_kg

    if company.min_charge is not None and cost < company.min_charge:
        cost = company.min_charge

    return money(cost)


def quote_shipping_cost(*, shipping_company_id, method: str, total_weight=None, total_volume=None) -> dict:
    company = _get_shipping_company(shipping_company_id)
    if company is None:
        raise ValidationError({"shipping_company_id": "shipping_company_id is required"})

    cost = estimate_shipping_cost(
        company=company,
        method=method,
        total_weight=total_weight,
        total_volume=total_volume,
    )
    return {"shipping_company_id": str(company.pk), "method": method, "estimated_cost": str(cost)}


# ==========================================================
# CREATE / UPDATE / DELETE
# ==========================================================

@transaction.atomic
def create_shipment(
    *,
    purchase_order_id,
    method: str = Shipment.Method.SEA,
    shipping_company_id=None,
    shipping_cost=Decimal("0.00"),
    customs_duty=Decimal("0.00"),
    other_fees=Decimal("0.00"),
    total_weight=None,
    total_volume=None,
    departure_date=None,
    estimated_arrival=None,
    tracking_number: str = "",
    notes: str = "",
    user=None,
) -> Shipment:
    po = _lock_purchase_order(purchase_order_id)

    if has_shipment(po):
        raise DuplicateShipmentError(
            f"Purchase order {po.po_number} already has a shipment",
            purchase_order_id=str(po.pk),
        )

    if po.status not in SHIPPABLE_STATES:
        raise InvalidStateError(
            "Shipments can only be created for confirmed or producing purchase orders",
            purchase_order_id=str(po.pk),
            status=po.status,
        )

    company = _get_shipping_company(shipping_company_id)

    def _create(number: str) -> Shipment:
        shipment = Shipment(
            shipment_number=number,
            purchase_order=po,
            shipping_company=company,
            method=method,
            shipping_cost=money(shipping_cost),
            customs_duty=money(customs_duty),
            other_fees=money(other_fees),
            total_weight=total_weight,
            total_volume=total_volume,
            departure_date=departure_date,
            estimated_arrival=estimated_arrival,
            tracking_number=(tracking_number or "").strip(),
            notes=(notes or "").strip(),
            created_by=user,
        )
        shipment.save()
        return shipment

    try:
        shipment = create_with_document_number(
            model=Shipment,
            field="shipment_number",
            prefix=SHIPMENT_PREFIX,
            create=_create,
        )
    except IntegrityError:
        raise DuplicateShipmentError(
            f"Purchase order {po.po_number} already has a shipment",
            purchase_order_id=str(po.pk),
        )

    force_purchase_order_status(purchase_order=po, status=PurchaseOrder.Status.SHIPPED)

    logger.info(
        "Shipment created",
        extra={
            "shipment_id": str(shipment.pk),
            "shipment_number": shipment.shipment_number,
            "purchase_order_id": str(po.pk),
            "total_cost": str(shipment.total_cost),
        },
    )
    return shipment


@transaction.atomic
def update_shipment(*, shipment_id, user=None, **fields) -> Shipment:
    shipment = _lock_shipment(shipment_id)

    if shipment.status == Shipment.Status.DELIVERED:
        raise InvalidStateError(
            "Cannot modify a delivered shipment",
            shipment_id=str(shipment.pk),
        )

    unknown = set(fields) - EDITABLE_FIELDS
    if unknown:
        raise ValidationError({"fields": f"Unsupported fields: {', '.join(sorted(unknown))}"})

    if "shipping_company_id" in fields:
        shipment.shipping_company = _get_shipping_company(fields.pop("shipping_company_id"))
    for name in Shipment.CHARGE_FIELDS:
        if name in fields:
            fields[name] = money(fields[name])
    for name, value in fields.items():
        setattr(shipment, name, value)

    shipment.save()
    logger.info("Shipment updated", extra={"shipment_id": str(shipment.pk)})
    return shipment


@transaction.atomic
def delete_shipment(*, shipment_id, user=None) -> None:
    shipment = _lock_shipment(shipment_id)

    if shipment.status != Shipment.Status.PENDING:
        raise InvalidStateError(
            "Only pending shipments can be deleted",
            shipment_id=str(shipment.pk),
            status=shipment.status,
        )

    po = _lock_purchase_order(shipment.purchase_order_id)
    number = shipment.shipment_number
    shipment.delete()
    force_purchase_order_status(purchase_order=po, status=PurchaseOrder.Status.PRODUCING)

    logger.info(
        "Shipment deleted",
        extra={"shipment_number": number, "purchase_order_id": str(po.pk)},
    )


# ==========================================================
# STATUS
# ==========================================================

@transaction.atomic
def update_shipment_status(*, shipment_id, status: str, user=None) -> ShipmentTransitionResult:
    shipment = _lock_shipment(shipment_id)
    validate_transition(shipment=shipment, target_status=status)

    previous = shipment.status
    delivery = None

    if status == Shipment.Status.DELIVERED:
        po = _lock_purchase_order(shipment.purchase_order_id)

        shipment.status = status
        shipment.actual_arrival = timezone.now()
        shipment.save(update_fields=["status", "actual_arrival", "updated_at"])

        force_purchase_order_status(purchase_order=po, status=PurchaseOrder.Status.RECEIVED)
        delivery = receive_shipment_items(shipment=shipment, purchase_order=po, user=user)
    else:
        shipment.status = status
        shipment.save(update_fields=["status", "updated_at"])

    logger.info(
        "Shipment status changed",
        extra={"shipment_id": str(shipment.pk), "from_status": previous, "to_status": status},
    )
    return ShipmentTransitionResult(shipment=shipment, delivery=delivery)


# ==========================================================
# PAYMENTS
# ==========================================================

@transaction.atomic
def record_shipment_payment(*, shipment_id, amount, user=None) -> Shipment:
    shipment = _lock_shipment(shipment_id)

    outcome = apply_payment(paid_amount=shipment.paid_amount, total=shipment.total_cost, amount=amount)
    shipment.paid_amount = outcome.paid_amount
    shipment.payment_status = outcome.payment_status
    shipment.save(update_fields=["paid_amount", "payment_status", "updated_at"])

    logger.info(
        "Shipment payment recorded",
        extra={
            "shipment_id": str(shipment.pk),
            "amount": str(money(amount)),
            "paid_amount": str(shipment.paid_amount),
            "payment_status": shipment.payment_status,
        },
    )
    return shipment


def get_shipment(shipment_id) -> Shipment:
    shipment = (
        Shipment.objects.select_related("purchase_order", "shipping_company")
        .filter(pk=shipment_id)
        .first()
    )
    if shipment is None:
        raise NotFoundError("Shipment not found", shipment_id=str(shipment_id))
    return shipment
