# shipments/services/cost_allocation.py

"""
LANDED COST ALLOCATION

Distributes a shipment's charges (freight, customs, fees) across the
purchase order lines it carries and returns a per-unit landed cost.

One strategy is chosen for the WHOLE shipment, in priority order:
1) WEIGHT  every line has a weight and sum(weight * qty) > 0
2) VALUE   sum(unit_cost * qty) > 0
3) EQUAL   1 / line count

Per line:
    landed_cost = unit_cost + (shipping_share + customs_share + fees_share) / quantity
rounded half-up to 2dp. Shares themselves are kept unrounded so that, for
each charge, the shares sum back to the charge.

Pure: no database access, no side effects.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Sequence

from common.exceptions import AllocationDegenerateError
from common.money import money, to_decimal


class AllocationStrategy(str, enum.Enum):
    WEIGHT = "weight"
    VALUE = "value"
    EQUAL = "equal"


@dataclass(frozen=True)
class AllocationItem:
    product_id: object
    quantity: int
    unit_cost: Decimal
    weight_kg: Optional[Decimal] = None


@dataclass(frozen=True)
class ItemAllocation:
    product_id: object
    quantity: int
    unit_cost: Decimal
    shipping_share: Decimal
    customs_share: Decimal
    fees_share: Decimal
    landed_cost: Decimal

    @property
    def total_share(self) -> Decimal:
        return self.shipping_share + self.customs_share + self.fees_share


@dataclass(frozen=True)
class AllocationResult:
    strategy: AllocationStrategy
    items: tuple

    def landed_cost_for(self, product_id) -> Decimal:
        for item in self.items:
            if str(item.product_id) == str(product_id):
                return item.landed_cost
        raise KeyError(product_id)


def _validate(items: Sequence[AllocationItem]) -> None:
    if not items:
        raise AllocationDegenerateError("Cannot allocate charges across zero items")

    for item in items:
        if int(item.quantity) <= 0:
            raise AllocationDegenerateError(
                "Items with zero quantity must be excluded before allocation",
                product_id=str(item.product_id),
                quantity=int(item.quantity),
            )


def select_strategy(items: Sequence[AllocationItem]) -> AllocationStrategy:
    _validate(items)

    if all(item.weight_kg is not None for item in items):
        total_weight = sum(
            (to_decimal(item.weight_kg) * item.quantity for item in items), Decimal("0")
        )
        if total_weight > 0:
            return AllocationStrategy.WEIGHT

    total_value = sum((to_decimal(item.unit_cost) * item.quantity for item in items), Decimal("0"))
    if total_value > 0:
        return AllocationStrategy.VALUE

    return AllocationStrategy.EQUAL


def _ratios(items: Sequence[AllocationItem], strategy: AllocationStrategy) -> list:
    if strategy == AllocationStrategy.WEIGHT:
        basis = [to_decimal(item.weight_kg) * item.quantity for item in items]
    elif strategy == AllocationStrategy.VALUE:
        basis = [to_decimal(item.unit_cost) * item.quantity for item in items]
    else:
        basis = [Decimal("1") for _ in items]

    total = sum(basis, Decimal("0"))
    return [b / total for b in basis]


def allocate(items: Sequence[AllocationItem], shipping_cost, customs_duty, other_fees) -> AllocationResult:
    items = list(items)
    strategy = select_strategy(items)

    charges = [to_decimal(shipping_cost), to_decimal(customs_duty), to_decimal(other_fees)]
    if any(charge < 0 for charge in charges):
        raise AllocationDegenerateError("Shipment charges cannot be negative")
    shipping, customs, fees = charges

    allocations = []
    for item, ratio in zip(items, _ratios(items, strategy)):
        shipping_share = shipping * ratio
        customs_share = customs * ratio
        fees_share = fees * ratio
        unit_cost = to_decimal(item.unit_cost)

        landed = money(
            unit_cost + (shipping_share + customs_share + fees_share) / Decimal(item.quantity)
        )
        allocations.append(
            ItemAllocation(
                product_id=item.product_id,
                quantity=int(item.quantity),
                unit_cost=unit_cost,
                shipping_share=shipping_share,
                customs_share=customs_share,
                fees_share=fees_share,
                landed_cost=landed,
            )
        )

    return AllocationResult(strategy=strategy, items=tuple(allocations))
