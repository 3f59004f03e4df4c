# common/payments.py

"""
PAYMENT TRACKING

Monotonic paid-amount accumulator shared by Order, PurchaseOrder and Shipment.

Rules:
- amount must be > 0
- paid_amount never exceeds the document total
- status: paid when fully covered, partial when anything was paid, else pending
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from django.db import models

from common.exceptions import PaymentError
from common.money import money


class PaymentStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    PARTIAL = "partial", "Partial"
    PAID = "paid", "Paid"


@dataclass(frozen=True)
class PaymentOutcome:
    paid_amount: Decimal
    payment_status: str
    balance: Decimal


def payment_status_for(*, paid_amount, total) -> str:
    paid_amount = money(paid_amount)
    total = money(total)
    if paid_amount > 0 and paid_amount >= total:
        return PaymentStatus.PAID
    if paid_amount > 0:
        return PaymentStatus.PARTIAL
    return PaymentStatus.PENDING


def apply_payment(*, paid_amount, total, amount) -> PaymentOutcome:
    amount = money(amount)
    paid_amount = money(paid_amount)
    total = money(total)

    if amount <= 0:
        raise PaymentError("Payment amount must be greater than zero", amount=str(amount))

    new_paid = paid_amount + amount
    if new_paid > total:
        raise PaymentError(
            "Payment exceeds the outstanding balance",
            amount=str(amount),
            balance=str(total - paid_amount),
        )

    return PaymentOutcome(
        paid_amount=new_paid,
        payment_status=payment_status_for(paid_amount=new_paid, total=total),
        balance=total - new_paid,
    )
