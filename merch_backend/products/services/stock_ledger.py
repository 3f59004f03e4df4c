# products/services/stock_ledger.py

"""
STOCK LEDGER SERVICE

The only writer of Product.current_stock and Product.landed_cost.

Core invariant:
    product.current_stock == product.opening_stock + sum(movement.quantity)
    product.current_stock >= 0

Rules:
- Every post runs in ONE transaction: movement insert + product update.
- Product rows are locked (select_for_update) for the read-then-write;
  multi-product units lock in primary-key order.
- Posts that would drive stock negative raise InsufficientStockError.
  Multi-line posts validate EVERY line before the first movement is written.
- Bulk receive recomputes the weighted-average landed cost and is the only
  place landed_cost changes. Replays for the same reference are no-ops.
- Movements are never edited. delete_movement() reverse-applies one and is
  reserved for administrative correction.
"""

from __future__ import annotations

import logging
import uuid
from collections import OrderedDict
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional

from django.conf import settings
from django.db import transaction
from django.db.models import Sum
from django.utils import timezone

from common.exceptions import (
    DomainError,
    InsufficientStockError,
    NotFoundError,
    WouldGoNegativeError,
)
from common.money import money
from products.models import ManualRef, Product, StockMovement, StockReference

logger = logging.getLogger("inventory")

NOTES_MIN_LENGTH = 5
NOTES_MAX_LENGTH = 1000


class StockLedgerError(DomainError):
    """Ledger input is invalid."""

    code = "invalid_stock_operation"


# ==========================================================
# RESULT / INPUT TYPES
# ==========================================================

@dataclass(frozen=True)
class MovementResult:
    movement: StockMovement
    stock_before: int
    stock_after: int


@dataclass(frozen=True)
class StockLine:
    product_id: uuid.UUID
    quantity: int


@dataclass(frozen=True)
class ReceiveLine:
    product_id: uuid.UUID
    quantity: int
    unit_cost: Decimal
    landed_cost: Decimal


@dataclass(frozen=True)
class BulkReceiveResult:
    movement_ids: list
    replayed: bool = False


@dataclass(frozen=True)
class ReversalResult:
    movement_id: uuid.UUID
    product_id: uuid.UUID
    stock_before: int
    stock_after: int


@dataclass(frozen=True)
class LedgerReconciliation:
    product_id: uuid.UUID
    expected_stock: int
    current_stock: int

    @property
    def ok(self) -> bool:
        return self.expected_stock == self.current_stock and self.current_stock >= 0


# ==========================================================
# HELPERS
# ==========================================================

def _as_uuid(value) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        raise NotFoundError("Product not found", product_id=str(value))


def _to_quantity(value) -> int:
    if value is None or value == "":
        raise StockLedgerError("quantity is required")

    if isinstance(value, bool):
        raise StockLedgerError("quantity must be an integer")

    try:
        quantity = int(value)
    except (TypeError, ValueError):
        raise StockLedgerError("quantity must be an integer")

    if quantity == 0:
        raise StockLedgerError("quantity cannot be 0")

    return quantity


def _lock_products(product_ids: Iterable) -> dict:
    ids = sorted({_as_uuid(pid) for pid in product_ids}, key=str)
    locked = {
        p.pk: p
        for p in Product.objects.select_for_update().filter(pk__in=ids).order_by("pk")
    }
    missing = [str(pid) for pid in ids if pid not in locked]
    if missing:
        raise NotFoundError("Product not found", product_ids=missing)
    return locked


def _movement_type_for(reason: str, quantity: int) -> str:
    expected = StockMovement.REASON_TO_MOVEMENT.get(reason)
    if expected:
        return expected
    return StockMovement.MovementType.IN if quantity > 0 else StockMovement.MovementType.OUT


def _append(
    *,
    product: Product,
    quantity: int,
    reason: str,
    reference: StockReference,
    user=None,
    notes: str = "",
    movement_type: Optional[str] = None,
    unit_cost: Optional[Decimal] = None,
    landed_cost: Optional[Decimal] = None,
    new_landed_cost: Optional[Decimal] = None,
) -> MovementResult:
    """
    Write one movement and the matching product balance.
    Caller must hold the product row lock inside a transaction.
    """
    stock_before = int(product.current_stock)
    stock_after = stock_before + quantity

    if stock_after < 0:
        raise InsufficientStockError(
            product_id=product.pk,
            product_name=product.name,
            available=stock_before,
            requested=-quantity,
        )

    movement = StockMovement.objects.create(
        product=product,
        movement_type=movement_type or _movement_type_for(reason, quantity),
        reason=reason,
        quantity=quantity,
        stock_before=stock_before,
        stock_after=stock_after,
        unit_cost=unit_cost,
        landed_cost=landed_cost,
        reference_type=reference.reference_type,
        reference_id=reference.id,
        notes=notes or "",
        performed_by=user,
    )

    updates = {"current_stock": stock_after, "updated_at": timezone.now()}
    if new_landed_cost is not None:
        updates["landed_cost"] = new_landed_cost
    Product.objects.filter(pk=product.pk).update(**updates)

    synced = {"current_stock": stock_after}
    if new_landed_cost is not None:
        synced["landed_cost"] = new_landed_cost
    product.sync_ledger_fields(**synced)

    return MovementResult(movement=movement, stock_before=stock_before, stock_after=stock_after)


# ==========================================================
# SINGLE POST
# ==========================================================

@transaction.atomic
def post_movement(
    *,
    product_id,
    quantity,
    reason: str,
    reference: StockReference,
    user=None,
    notes: str = "",
) -> MovementResult:
    quantity = _to_quantity(quantity)
    product = _lock_products([product_id])[_as_uuid(product_id)]

    result = _append(
        product=product,
        quantity=quantity,
        reason=reason,
        reference=reference,
        user=user,
        notes=notes,
    )

    logger.info(
        "Stock movement posted",
        extra={
            "product_id": str(product.pk),
            "quantity": quantity,
            "reason": reason,
            "stock_after": result.stock_after,
            "reference_type": reference.reference_type,
            "reference_id": str(reference.id) if reference.id else None,
        },
    )
    return result


# ==========================================================
# MULTI-LINE POSTS (ORDER CONFIRM / CANCEL)
# ==========================================================

def _post_lines(
    *,
    lines: Iterable[StockLine],
    direction: int,
    reason: str,
    reference: StockReference,
    user=None,
    notes: str = "",
) -> list:
    lines = [StockLine(product_id=_as_uuid(l.product_id), quantity=_to_quantity(l.quantity)) for l in lines]
    if not lines:
        return []

    for line in lines:
        if line.quantity < 0:
            raise StockLedgerError("Line quantities must be positive")

    requested = OrderedDict()
    for line in lines:
        requested[line.product_id] = requested.get(line.product_id, 0) + line.quantity

    products = _lock_products(requested.keys())

    if direction < 0:
        for product_id, total in requested.items():
            product = products[product_id]
            if product.current_stock < total:
                raise InsufficientStockError(
                    product_id=product.pk,
                    product_name=product.name,
                    available=product.current_stock,
                    requested=total,
                )

    return [
        _append(
            product=products[line.product_id],
            quantity=direction * line.quantity,
            reason=reason,
            reference=reference,
            user=user,
            notes=notes,
        )
        for line in lines
    ]


@transaction.atomic
def post_order_deductions(*, lines, reference: StockReference, user=None, notes: str = "") -> list:
    """
    Debit stock for every line, or nothing at all.
    Quantities for the same product are summed before the availability check.
    """
    results = _post_lines(
        lines=lines,
        direction=-1,
        reason=StockMovement.Reason.SALE,
        reference=reference,
        user=user,
        notes=notes,
    )
    logger.info(
        "Sale deductions posted",
        extra={"reference_id": str(reference.id), "movements": len(results)},
    )
    return results


@transaction.atomic
def post_order_returns(*, lines, reference: StockReference, user=None, notes: str = "") -> list:
    results = _post_lines(
        lines=lines,
        direction=1,
        reason=StockMovement.Reason.RETURN,
        reference=reference,
        user=user,
        notes=notes,
    )
    logger.info(
        "Return credits posted",
        extra={"reference_id": str(reference.id), "movements": len(results)},
    )
    return results


# ==========================================================
# BULK RECEIVE
# ==========================================================

def weighted_landed_cost(*, stock_before: int, old_landed_cost, quantity: int, incoming_landed_cost) -> Decimal:
    """
    round2((stock_before * old + quantity * incoming) / (stock_before + quantity))

    old defaults to incoming when the product has no cost basis yet.
    """
    incoming = money(incoming_landed_cost)
    old = money(old_landed_cost) if old_landed_cost is not None else incoming
    stock_after = stock_before + quantity
    return money((Decimal(stock_before) * old + Decimal(quantity) * incoming) / Decimal(stock_after))


@transaction.atomic
def post_bulk_receive(
    *,
    lines: Iterable[ReceiveLine],
    reference: StockReference,
    user=None,
    notes: str = "",
) -> BulkReceiveResult:
    lines = list(lines)
    if not lines:
        raise StockLedgerError("Nothing to receive")

    if not isinstance(reference, ManualRef):
        existing = list(
            StockMovement.objects.filter(
                reference_type=reference.reference_type,
                reference_id=reference.id,
                reason=StockMovement.Reason.SHIPMENT_RECEIVED,
            ).values_list("id", flat=True)
        )
        if existing:
            logger.info(
                "Bulk receive replay ignored",
                extra={"reference_id": str(reference.id), "movements": len(existing)},
            )
            return BulkReceiveResult(movement_ids=existing, replayed=True)

    products = _lock_products(line.product_id for line in lines)
    movement_ids = []

    for line in lines:
        quantity = _to_quantity(line.quantity)
        if quantity < 0:
            raise StockLedgerError("Received quantities must be positive")

        product = products[_as_uuid(line.product_id)]
        incoming = money(line.landed_cost)
        new_landed = weighted_landed_cost(
            stock_before=int(product.current_stock),
            old_landed_cost=product.landed_cost,
            quantity=quantity,
            incoming_landed_cost=incoming,
        )

        result = _append(
            product=product,
            quantity=quantity,
            reason=StockMovement.Reason.SHIPMENT_RECEIVED,
            reference=reference,
            user=user,
            notes=notes,
            unit_cost=money(line.unit_cost),
            landed_cost=incoming,
            new_landed_cost=new_landed,
        )
        movement_ids.append(result.movement.pk)

    logger.info(
        "Bulk receive posted",
        extra={
            "reference_type": reference.reference_type,
            "reference_id": str(reference.id) if reference.id else None,
            "lines": len(movement_ids),
        },
    )
    return BulkReceiveResult(movement_ids=movement_ids)


# ==========================================================
# MANUAL ADJUSTMENT
# ==========================================================

@transaction.atomic
def adjust_stock(*, product_id, quantity, reason: str, notes: str, user=None) -> MovementResult:
    quantity = _to_quantity(quantity)

    if reason not in StockMovement.ADJUSTMENT_REASONS:
        raise StockLedgerError(
            f"Invalid adjustment reason: {reason}",
            allowed=[str(r) for r in StockMovement.ADJUSTMENT_REASONS],
        )

    notes = (notes or "").strip()
    if len(notes) < NOTES_MIN_LENGTH:
        raise StockLedgerError(f"Notes must be at least {NOTES_MIN_LENGTH} characters")
    if len(notes) > NOTES_MAX_LENGTH:
        raise StockLedgerError(f"Notes must be at most {NOTES_MAX_LENGTH} characters")

    product = _lock_products([product_id])[_as_uuid(product_id)]

    result = _append(
        product=product,
        quantity=quantity,
        reason=reason,
        reference=ManualRef(),
        user=user,
        notes=notes,
        movement_type=(
            StockMovement.MovementType.IN if quantity > 0 else StockMovement.MovementType.OUT
        ),
    )

    logger.info(
        "Manual stock adjustment",
        extra={
            "product_id": str(product.pk),
            "quantity": quantity,
            "reason": reason,
            "stock_after": result.stock_after,
            "user_id": str(user.pk) if user else None,
        },
    )
    return result


# ==========================================================
# REVERSAL (ADMIN CORRECTION)
# ==========================================================

@transaction.atomic
def delete_movement(*, movement_id, user=None) -> ReversalResult:
    movement = StockMovement.objects.filter(pk=movement_id).only("id", "product_id").first()
    if movement is None:
        raise NotFoundError("Stock movement not found", movement_id=str(movement_id))

    product = _lock_products([movement.product_id])[movement.product_id]

    movement = StockMovement.objects.select_for_update().filter(pk=movement_id).first()
    if movement is None:
        raise NotFoundError("Stock movement not found", movement_id=str(movement_id))

    stock_before = int(product.current_stock)
    reversed_stock = stock_before - movement.quantity

    if reversed_stock < 0:
        raise WouldGoNegativeError(
            "Deleting this movement would make stock negative",
            movement_id=str(movement.pk),
            product_id=str(product.pk),
            current_stock=stock_before,
            movement_quantity=movement.quantity,
        )

    StockMovement.objects.filter(pk=movement.pk).delete()
    Product.objects.filter(pk=product.pk).update(
        current_stock=reversed_stock,
        updated_at=timezone.now(),
    )

    logger.warning(
        "Stock movement deleted",
        extra={
            "movement_id": str(movement.pk),
            "product_id": str(product.pk),
            "quantity": movement.quantity,
            "stock_after": reversed_stock,
            "user_id": str(user.pk) if user else None,
        },
    )
    return ReversalResult(
        movement_id=movement.pk,
        product_id=product.pk,
        stock_before=stock_before,
        stock_after=reversed_stock,
    )


# ==========================================================
# READS
# ==========================================================

def get_product_stock_movements(*, product_id, limit: Optional[int] = None) -> list:
    pid = _as_uuid(product_id)
    if not Product.objects.filter(pk=pid).exists():
        raise NotFoundError("Product not found", product_id=str(pid))

    limit = int(limit or getattr(settings, "STOCK_MOVEMENT_HISTORY_LIMIT", 10))
    if limit <= 0:
        raise StockLedgerError("limit must be positive")

    return list(
        StockMovement.objects.filter(product_id=pid)
        .select_related("product", "performed_by")
        .order_by("-created_at")[:limit]
    )


def reconcile_product(product: Product) -> LedgerReconciliation:
    total = (
        StockMovement.objects.filter(product_id=product.pk)
        .aggregate(total=Sum("quantity"))
        .get("total")
        or 0
    )
    current = Product.objects.filter(pk=product.pk).values_list("current_stock", flat=True).first()
    return LedgerReconciliation(
        product_id=product.pk,
        expected_stock=int(product.opening_stock or 0) + int(total),
        current_stock=int(current or 0),
    )
