# orders/services/order_service.py

"""
======================================================
PATH: orders/services/order_service.py
======================================================
ORDER SERVICE

Operations:
- create_order          (ORD-{year}-{seq}; may start directly as confirmed)
- update_order          (header fields; items only while pending)
- update_order_status   (transition table + stock side effects)
- cancel_order
- delete_order          (pending / cancelled only)
- record_order_payment

Stock side effects (same transaction as the status change):
- pending -> confirmed:   one SALE movement per item; every item is checked
                          against locked stock before anything is posted
- committed -> cancelled: one RETURN movement per item
- pending -> cancelled:   nothing (stock was never deducted)

Lock order: order row, then product rows (inside the stock ledger).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional

from django.core.exceptions import ValidationError
from django.db import transaction

from common.exceptions import InvalidStateError, NotFoundError, PaymentError
from common.money import money
from common.numbering import create_with_document_number
from common.payments import apply_payment
from orders.models import Order, OrderItem
from orders.services.order_lifecycle import (
    DELETABLE_STATES,
    STOCK_COMMITTED_STATES,
    TERMINAL_STATES,
    validate_transition,
)
from products.models import OrderRef, Product
from products.services.stock_ledger import StockLine, post_order_deductions, post_order_returns

logger = logging.getLogger("orders")

ORDER_PREFIX = "ORD"

HEADER_FIELDS = {
    "order_type",
    "customer_name",
    "customer_phone",
    "customer_email",
    "company_name",
    "shipping_address",
    "city",
    "shipping_fee",
    "discount",
    "notes",
}

INITIAL_STATES = {Order.Status.PENDING, Order.Status.CONFIRMED}


@dataclass(frozen=True)
class OrderLine:
    product_id: object
    quantity: int
    unit_price: Optional[Decimal] = None


# ==========================================================
# HELPERS
# ==========================================================

def _lock_order(order_id) -> Order:
    order = Order.objects.select_for_update().filter(pk=order_id).first()
    if order is None:
        raise NotFoundError("Order not found", order_id=str(order_id))
    return order


def _default_price(product: Product, order_type: str) -> Decimal:
    if order_type == Order.OrderType.WHOLESALE:
        return product.wholesale_price
    return product.retail_price


def _normalize_lines(items: Iterable, *, order_type: str) -> list:
    raw_lines = []
    for raw in items or []:
        if isinstance(raw, OrderLine):
            raw_lines.append(raw)
        else:
            raw_lines.append(
                OrderLine(
                    product_id=raw.get("product_id"),
                    quantity=raw.get("quantity"),
                    unit_price=raw.get("unit_price"),
                )
            )

    if not raw_lines:
        raise ValidationError({"items": "At least one item is required"})

    products = {
        str(p.pk): p
        for p in Product.objects.filter(pk__in={str(l.product_id) for l in raw_lines})
    }

    lines = []
    for line in raw_lines:
        product = products.get(str(line.product_id))
        if product is None:
            raise NotFoundError("Product not found", product_id=str(line.product_id))

        try:
            quantity = int(line.quantity)
        except (TypeError, ValueError):
            raise ValidationError({"items": "quantity must be an integer"})
        if quantity <= 0:
            raise ValidationError({"items": "quantity must be greater than zero"})

        unit_price = money(line.unit_price if line.unit_price is not None else _default_price(product, order_type))
        if unit_price < 0:
            raise ValidationError({"items": "unit_price cannot be negative"})

        lines.append(OrderLine(product_id=product.pk, quantity=quantity, unit_price=unit_price))

    return lines


def _replace_items(order: Order, lines: list) -> None:
    order.items.all().delete()
    for line in lines:
        OrderItem.objects.create(
            order=order,
            product_id=line.product_id,
            quantity=line.quantity,
            unit_price=line.unit_price,
        )
    order.recalculate_totals()


def _stock_lines(order: Order) -> list:
    return [
        StockLine(product_id=item.product_id, quantity=item.quantity)
        for item in order.items.order_by("created_at", "pk")
    ]


def _apply_stock_effects(*, order: Order, target_status: str, user=None) -> int:
    """
    Post the ledger side effect of moving `order` to `target_status`.
    Returns the number of movements written.
    """
    reference = OrderRef(id=order.pk)

    if target_status == Order.Status.CONFIRMED:
        results = post_order_deductions(
            lines=_stock_lines(order),
            reference=reference,
            user=user,
            notes=f"Order {order.order_number}",
        )
        return len(results)

    if target_status == Order.Status.CANCELLED and order.status in STOCK_COMMITTED_STATES:
        results = post_order_returns(
            lines=_stock_lines(order),
            reference=reference,
            user=user,
            notes=f"Order {order.order_number} cancelled",
        )
        return len(results)

    return 0


def _apply_header(order: Order, fields: dict) -> None:
    unknown = set(fields) - HEADER_FIELDS
    if unknown:
        raise ValidationError({"fields": f"Unsupported fields: {', '.join(sorted(unknown))}"})

    for name in ("shipping_fee", "discount"):
        if name in fields:
            fields[name] = money(fields[name])
    for name, value in fields.items():
        setattr(order, name, value.strip() if isinstance(value, str) else value)


# ==========================================================
# CREATE / UPDATE / DELETE
# ==========================================================

def create_order(
    *,
    items,
    status: str = Order.Status.PENDING,
    user=None,
    **header,
) -> Order:
    if status not in INITIAL_STATES:
        raise InvalidStateError(
            "New orders start as pending or confirmed",
            status=status,
        )

    order_type = header.get("order_type") or Order.OrderType.ONLINE
    lines = _normalize_lines(items, order_type=order_type)

    def _create(number: str) -> Order:
        order = Order(order_number=number, created_by=user)
        _apply_header(order, dict(header))
        order.save()

        _replace_items(order, lines)
        order.save()

        if status == Order.Status.CONFIRMED:
            _apply_stock_effects(order=order, target_status=status, user=user)
            order.status = status
            order.save(update_fields=["status", "updated_at"])
        return order

    order = create_with_document_number(
        model=Order,
        field="order_number",
        prefix=ORDER_PREFIX,
        create=_create,
    )

    logger.info(
        "Order created",
        extra={
            "order_id": str(order.pk),
            "order_number": order.order_number,
            "status": order.status,
            "total": str(order.total),
        },
    )
    return order


@transaction.atomic
def update_order(*, order_id, items=None, user=None, **fields) -> Order:
    order = _lock_order(order_id)

    if order.status in TERMINAL_STATES:
        raise InvalidStateError(
            f"Cannot modify a {order.status} order",
            order_id=str(order.pk),
            status=order.status,
        )

    if items is not None and not order.is_editable:
        raise InvalidStateError(
            f"Cannot modify items of {order.status} order",
            order_id=str(order.pk),
            status=order.status,
        )

    _apply_header(order, fields)

    if items is not None:
        _replace_items(order, _normalize_lines(items, order_type=order.order_type))
    else:
        order.recalculate_totals()

    order.save()
    logger.info("Order updated", extra={"order_id": str(order.pk)})
    return order


@transaction.atomic
def delete_order(*, order_id, user=None) -> None:
    order = _lock_order(order_id)

    if order.status not in DELETABLE_STATES:
        raise InvalidStateError(
            f"Cannot delete a {order.status} order",
            order_id=str(order.pk),
            status=order.status,
        )

    number = order.order_number
    order.delete()
    logger.info("Order deleted", extra={"order_number": number})


# ==========================================================
# STATUS
# ==========================================================

@transaction.atomic
def update_order_status(*, order_id, status: str, user=None) -> Order:
    order = _lock_order(order_id)
    validate_transition(order=order, target_status=status)

    posted = _apply_stock_effects(order=order, target_status=status, user=user)

    previous = order.status
    order.status = status
    order.save(update_fields=["status", "updated_at"])

    logger.info(
        "Order status changed",
        extra={
            "order_id": str(order.pk),
            "from_status": previous,
            "to_status": status,
            "movements": posted,
        },
    )
    return order


def cancel_order(*, order_id, user=None) -> Order:
    return update_order_status(order_id=order_id, status=Order.Status.CANCELLED, user=user)


# ==========================================================
# PAYMENTS
# ==========================================================

@transaction.atomic
def record_order_payment(*, order_id, amount, user=None) -> Order:
    order = _lock_order(order_id)

    if order.status == Order.Status.CANCELLED:
        raise PaymentError(
            "Cannot record payment for a cancelled order",
            order_id=str(order.pk),
        )

    outcome = apply_payment(paid_amount=order.paid_amount, total=order.total, amount=amount)
    order.paid_amount = outcome.paid_amount
    order.payment_status = outcome.payment_status
    order.save(update_fields=["paid_amount", "payment_status", "updated_at"])

    logger.info(
        "Order payment recorded",
        extra={
            "order_id": str(order.pk),
            "amount": str(money(amount)),
            "paid_amount": str(order.paid_amount),
            "payment_status": order.payment_status,
        },
    )
    return order


def get_order(order_id) -> Order:
    order = Order.objects.prefetch_related("items__product").filter(pk=order_id).first()
    if order is None:
        raise NotFoundError("Order not found", order_id=str(order_id))
    return order
