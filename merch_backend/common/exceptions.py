# common/exceptions.py

"""
DOMAIN ERRORS

Centralized error taxonomy for the stock ledger and the three
fulfillment state machines (Order, PurchaseOrder, Shipment).

Every error carries:
- code: stable machine-readable identifier (used by the API envelope)
- message: human readable explanation
- details: structured context for the UI (product, available, requested...)
- http_status: status code the API layer responds with
"""

from __future__ import annotations


class DomainError(Exception):
    """Base exception for all core service failures."""

    code = "domain_error"
    http_status = 400

    def __init__(self, message: str = "", **details):
        message = message or (type(self).__doc__ or self.code).strip()
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class NotFoundError(DomainError):
    """Requested record does not exist."""

    code = "not_found"
    http_status = 404


class InvalidStateError(DomainError):
    """Operation is not allowed in the record's current state."""

    code = "invalid_state"
    http_status = 409


class InvalidTransitionError(DomainError):
    """Requested status change is not in the allowed transition table."""

    code = "invalid_transition"
    http_status = 409

    def __init__(self, *, entity: str, from_status: str, to_status: str, message: str = ""):
        super().__init__(
            message or f"Invalid {entity} transition: {from_status} -> {to_status}",
            entity=entity,
            from_status=from_status,
            to_status=to_status,
        )


class InsufficientStockError(DomainError):
    """A ledger post would drive current stock below zero."""

    code = "insufficient_stock"
    http_status = 409

    def __init__(self, *, product_id, product_name: str, available: int, requested: int):
        super().__init__(
            f"Insufficient stock for {product_name}: available {available}, requested {requested}",
            product_id=str(product_id),
            product_name=product_name,
            available=int(available),
            requested=int(requested),
        )


class WouldGoNegativeError(DomainError):
    """Reversing a movement would drive current stock below zero."""

    code = "would_go_negative"
    http_status = 409


class DuplicateShipmentError(DomainError):
    """Purchase order already has a shipment."""

    code = "duplicate_shipment"
    http_status = 409


class MissingShipmentError(DomainError):
    """Purchase order cannot be marked shipped without a shipment."""

    code = "missing_shipment"
    http_status = 409


class AllocationDegenerateError(DomainError):
    """Cost allocation was invoked without any allocatable items."""

    code = "allocation_degenerate"
    http_status = 400


class PaymentError(DomainError):
    """Payment amount is invalid for the record's balance."""

    code = "payment_error"
    http_status = 400


class DocumentNumberConflictError(DomainError):
    """Could not reserve a unique document number after retrying."""

    code = "document_number_conflict"
    http_status = 409
