# common/numbering.py

"""
DOCUMENT NUMBERING

Human-facing document numbers (ORD-2026-001, PO-2026-014, SHIP-2026-003).

Rules:
- Sequence is per calendar year and per prefix.
- Next number = max existing number for the year + 1 (zero-padded to 3).
- Numbers are not reserved ahead of time, so two concurrent creations can
  compute the same value. The unique constraint on the number column
  rejects the loser, which retries with a fresh number inside a savepoint.
"""

from __future__ import annotations

import logging
from typing import Callable, TypeVar

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models.functions import Length
from django.utils import timezone

from common.exceptions import DocumentNumberConflictError

logger = logging.getLogger("numbering")

T = TypeVar("T")

SEQUENCE_WIDTH = 3


def _stem(prefix: str, year: int) -> str:
    return f"{prefix}-{year}-"


def _parse_sequence(number: str | None) -> int:
    if not number:
        return 0
    try:
        return int(number.rsplit("-", 1)[-1])
    except ValueError:
        return 0


def next_document_number(*, model, field: str, prefix: str, year: int | None = None) -> str:
    """
    Compute the next number for `prefix` in `year` (defaults to current year).

    Ordering by length first keeps ORD-2026-1000 after ORD-2026-999.
    """
    year = year or timezone.localdate().year
    stem = _stem(prefix, year)

    last = (
        model.objects.filter(**{f"{field}__startswith": stem})
        .annotate(_number_length=Length(field))
        .order_by("-_number_length", f"-{field}")
        .values_list(field, flat=True)
        .first()
    )

    return f"{stem}{_parse_sequence(last) + 1:0{SEQUENCE_WIDTH}d}"


def create_with_document_number(
    *,
    model,
    field: str,
    prefix: str,
    create: Callable[[str], T],
    max_attempts: int | None = None,
) -> T:
    """
    Call `create(number)` with the next free number, retrying on collision.

    Only IntegrityErrors caused by the number itself are retried; any other
    integrity failure propagates unchanged.
    """
    attempts = int(max_attempts or getattr(settings, "DOCUMENT_NUMBER_MAX_RETRIES", 5))

    for attempt in range(1, attempts + 1):
        number = next_document_number(model=model, field=field, prefix=prefix)
        try:
            with transaction.atomic():
                return create(number)
        except IntegrityError:
            if not model.objects.filter(**{field: number}).exists():
                raise
            logger.warning(
                "Document number collision, retrying",
                extra={"number": number, "attempt": attempt, "model": model.__name__},
            )

    raise DocumentNumberConflictError(
        f"Could not allocate a unique {prefix} number after {attempts} attempts",
        prefix=prefix,
        attempts=attempts,
    )
