# shipments/services/shipment_lifecycle.py

"""
SHIPMENT LIFECYCLE DOMAIN RULES

    pending -> in_transit -> customs -> delivered

Strictly linear: no skipping, no backward moves. DELIVERED is terminal.
"""

from common.exceptions import InvalidTransitionError
from shipments.models import Shipment

Status = Shipment.Status

TERMINAL_STATES = {
    Status.DELIVERED,
}

ALLOWED_TRANSITIONS = {
    Status.PENDING: {Status.IN_TRANSIT},
    Status.IN_TRANSIT: {Status.CUSTOMS},
    Status.CUSTOMS: {Status.DELIVERED},
    Status.DELIVERED: set(),
}


def can_transition(*, from_status: str, to_status: str) -> bool:
    if from_status in TERMINAL_STATES:
        return False

    return to_status in ALLOWED_TRANSITIONS.get(from_status, set())


def validate_transition(*, shipment: Shipment, target_status: str):
    if not can_transition(from_status=shipment.status, to_status=target_status):
        raise InvalidTransitionError(
            entity="shipment",
            from_status=shipment.status,
            to_status=target_status,
            message=(
                f"Shipment {shipment.shipment_number} cannot transition from "
                f"'{shipment.status}' to '{target_status}'"
            ),
        )
