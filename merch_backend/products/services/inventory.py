# products/services/inventory.py

"""
INVENTORY READS

Read-only views over Product balances for dashboards.
Nothing here writes; current_stock / landed_cost belong to the stock ledger.
"""

from __future__ import annotations

from decimal import Decimal

from django.db.models import Count, DecimalField, ExpressionWrapper, F, Q, Sum
from django.db.models.functions import Coalesce

from common.money import money
from products.models import Product


def active_products():
    return Product.objects.filter(status=Product.Status.ACTIVE)


def low_stock_products():
    """In stock, but at or below the reorder level."""
    return (
        active_products()
        .filter(current_stock__gt=0, current_stock__lte=F("reorder_level"))
        .order_by("current_stock", "name")
    )


def out_of_stock_products():
    return active_products().filter(current_stock=0).order_by("name")


def inventory_value() -> dict:
    value_expr = ExpressionWrapper(
        F("current_stock") * Coalesce(F("landed_cost"), Decimal("0.00")),
        output_field=DecimalField(max_digits=18, decimal_places=2),
    )
    totals = Product.objects.aggregate(
        total_value=Sum(value_expr),
        total_units=Sum("current_stock"),
    )
    return {
        "total_value": money(totals.get("total_value") or 0),
        "total_units": int(totals.get("total_units") or 0),
        "products": Product.objects.count(),
    }


def stock_alert_counts() -> dict:
    counts = active_products().aggregate(
        low_stock=Count(
            "pk",
            filter=Q(current_stock__gt=0, current_stock__lte=F("reorder_level")),
        ),
        out_of_stock=Count("pk", filter=Q(current_stock=0)),
    )
    return {
        "low_stock": int(counts.get("low_stock") or 0),
        "out_of_stock": int(counts.get("out_of_stock") or 0),
    }
