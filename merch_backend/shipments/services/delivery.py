# shipments/services/delivery.py

"""
======================================================
PATH: shipments/services/delivery.py
======================================================
SHIPMENT DELIVERY PROCESSING

Receives a delivered shipment's purchase order lines into stock.

Canonical flow (inside the caller's transaction):
1) Lock PO items
2) Allocate shipment charges across lines with quantity > 0 (one strategy)
3) Post bulk receive for the outstanding quantity of each line
   (quantity - received_qty), landed cost from the allocation
4) Advance received_qty to quantity

Idempotency rule:
- Lines with nothing outstanding are skipped; when every line is fully
  received the call is a no-op (no movements, no cost change).
- The stock ledger also refuses to post a second receipt for the same
  shipment reference; receipts found while lines are still outstanding
  raise InvalidStateError instead of marking the lines received.

Failure rule:
- Any failure raises and rolls back the enclosing transaction, including
  the shipment's status change when called from update_shipment_status().
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from django.db import transaction
from django.db.models import F

from common.exceptions import InvalidStateError, NotFoundError
from products.models import Product, ShipmentRef
from products.services.stock_ledger import ReceiveLine, post_bulk_receive
from purchases.models import PurchaseOrder, PurchaseOrderItem
from shipments.models import Shipment
from shipments.services.cost_allocation import AllocationItem, allocate

logger = logging.getLogger("shipments")


@dataclass(frozen=True)
class DeliveryResult:
    shipment_id: object
    purchase_order_id: object
    lines_posted: int
    strategy: Optional[str] = None
    movement_ids: list = field(default_factory=list)
    already_received: bool = False


def receive_shipment_items(*, shipment: Shipment, purchase_order: PurchaseOrder, user=None) -> DeliveryResult:
    """
    Steps 1-4. Caller holds the shipment and PO row locks in a transaction.
    """
    items = list(
        PurchaseOrderItem.objects.select_for_update()
        .filter(purchase_order=purchase_order, quantity__gt=0)
        .order_by("created_at", "pk")
    )
    if not items:
        raise InvalidStateError(
            "Purchase order has no items to receive",
            purchase_order_id=str(purchase_order.pk),
        )

    outstanding = [item for item in items if item.outstanding_qty > 0]
    if not outstanding:
        logger.info(
            "Shipment already received, nothing to post",
            extra={"shipment_id": str(shipment.pk), "purchase_order_id": str(purchase_order.pk)},
        )
        return DeliveryResult(
            shipment_id=shipment.pk,
            purchase_order_id=purchase_order.pk,
            lines_posted=0,
            already_received=True,
        )

    weights = dict(
        Product.objects.filter(pk__in=[item.product_id for item in items]).values_list("pk", "weight_kg")
    )
    allocation = allocate(
        [
            AllocationItem(
                product_id=item.product_id,
                quantity=item.quantity,
                unit_cost=item.unit_cost,
                weight_kg=weights.get(item.product_id),
            )
            for item in items
        ],
        shipment.shipping_cost,
        shipment.customs_duty,
        shipment.other_fees,
    )
    landed_by_item = {item.pk: alloc.landed_cost for item, alloc in zip(items, allocation.items)}

    bulk = post_bulk_receive(
        lines=[
            ReceiveLine(
                product_id=item.product_id,
                quantity=item.outstanding_qty,
                unit_cost=item.unit_cost,
                landed_cost=landed_by_item[item.pk],
            )
            for item in outstanding
        ],
        reference=ShipmentRef(id=shipment.pk),
        user=user,
        notes=f"Shipment {shipment.shipment_number} ({purchase_order.po_number})",
    )
    if bulk.replayed:
        # movements exist while received_qty says otherwise; nothing was posted
        raise InvalidStateError(
            "Receipt movements already exist for this shipment but its lines are not marked received",
            shipment_id=str(shipment.pk),
            purchase_order_id=str(purchase_order.pk),
        )

    PurchaseOrderItem.objects.filter(pk__in=[item.pk for item in outstanding]).update(
        received_qty=F("quantity")
    )

    logger.info(
        "Shipment received into stock",
        extra={
            "shipment_id": str(shipment.pk),
            "purchase_order_id": str(purchase_order.pk),
            "strategy": allocation.strategy.value,
            "lines": len(outstanding),
        },
    )
    return DeliveryResult(
        shipment_id=shipment.pk,
        purchase_order_id=purchase_order.pk,
        lines_posted=len(outstanding),
        strategy=allocation.strategy.value,
        movement_ids=list(bulk.movement_ids),
    )


@transaction.atomic
def process_shipment_delivery(*, shipment_id, user=None) -> DeliveryResult:
    """
    Re-runnable entry point for a delivered shipment (retry after failure,
    or a no-op once everything is received).
    """
    shipment = Shipment.objects.select_for_update().filter(pk=shipment_id).first()
    if shipment is None:
        raise NotFoundError("Shipment not found", shipment_id=str(shipment_id))

    if shipment.status != Shipment.Status.DELIVERED:
        raise InvalidStateError(
            "Shipment must be delivered before it can be received into stock",
            shipment_id=str(shipment.pk),
            status=shipment.status,
        )

    purchase_order = PurchaseOrder.objects.select_for_update().get(pk=shipment.purchase_order_id)
    return receive_shipment_items(shipment=shipment, purchase_order=purchase_order, user=user)
