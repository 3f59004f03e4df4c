# purchases/services/purchase_order_lifecycle.py

"""
PURCHASE ORDER LIFECYCLE DOMAIN RULES

    draft <-> sent <-> confirmed <-> producing -> shipped -> received

DESIGN PRINCIPLES:
- No database writes
- No stock mutation
- Single source of truth for PO transitions
"""

from common.exceptions import InvalidTransitionError
from purchases.models import PurchaseOrder

Status = PurchaseOrder.Status

TERMINAL_STATES = {
    Status.RECEIVED,
}

ALLOWED_TRANSITIONS = {
    Status.DRAFT: {Status.SENT},
    Status.SENT: {Status.CONFIRMED, Status.DRAFT},
    Status.CONFIRMED: {Status.PRODUCING, Status.SENT},
    Status.PRODUCING: {Status.SHIPPED, Status.CONFIRMED},
    Status.SHIPPED: {Status.RECEIVED},
    Status.RECEIVED: set(),
}

# A shipment can only be booked against a PO in one of these states
SHIPPABLE_STATES = {
    Status.CONFIRMED,
    Status.PRODUCING,
}


def can_transition(*, from_status: str, to_status: str) -> bool:
    if from_status in TERMINAL_STATES:
        return False

    return to_status in ALLOWED_TRANSITIONS.get(from_status, set())


def validate_transition(*, purchase_order: PurchaseOrder, target_status: str):
    if not can_transition(from_status=purchase_order.status, to_status=target_status):
        raise InvalidTransitionError(
            entity="purchase_order",
            from_status=purchase_order.status,
            to_status=target_status,
            message=(
                f"Purchase order {purchase_order.po_number} cannot transition from "
                f"'{purchase_order.status}' to '{target_status}'"
            ),
        )
