# products/models/references.py

"""
STOCK MOVEMENT REFERENCES

A movement points back at whatever caused it. The pointer is a weak
lookup (no FK, no ownership), stored as reference_type + reference_id.

In code it is handled as a closed set of frozen dataclasses:
    OrderRef(id) | ShipmentRef(id) | ManualRef()
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import ClassVar, Optional, Union

from django.db import models


class ReferenceType(models.TextChoices):
    ORDER = "order", "Order"
    SHIPMENT = "shipment", "Shipment"
    MANUAL = "manual", "Manual"


@dataclass(frozen=True)
class OrderRef:
    id: uuid.UUID
    reference_type: ClassVar[str] = ReferenceType.ORDER


@dataclass(frozen=True)
class ShipmentRef:
    id: uuid.UUID
    reference_type: ClassVar[str] = ReferenceType.SHIPMENT


@dataclass(frozen=True)
class ManualRef:
    reference_type: ClassVar[str] = ReferenceType.MANUAL

    @property
    def id(self) -> Optional[uuid.UUID]:
        return None


StockReference = Union[OrderRef, ShipmentRef, ManualRef]

_BY_TYPE = {
    ReferenceType.ORDER: OrderRef,
    ReferenceType.SHIPMENT: ShipmentRef,
}


def reference_from_row(reference_type: str, reference_id) -> StockReference:
    if reference_type == ReferenceType.MANUAL:
        return ManualRef()
    try:
        ref_cls = _BY_TYPE[reference_type]
    except KeyError:
        raise ValueError(f"Unknown stock reference type: {reference_type!r}")
    return ref_cls(id=reference_id)
