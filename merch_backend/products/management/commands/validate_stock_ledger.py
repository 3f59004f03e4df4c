# products/management/commands/validate_stock_ledger.py

from __future__ import annotations

from django.core.management.base import BaseCommand
from django.db.models import F

from products.models import Product, StockMovement
from products.services.stock_ledger import reconcile_product
from shipments.models import Shipment


class Command(BaseCommand):
    help = "Validate stock ledger integrity (opening stock + movements == current stock)."

    def add_arguments(self, parser):
        parser.add_argument(
            "--sku",
            dest="sku",
            help="Only check the product with this SKU (optional)",
        )
        parser.add_argument(
            "--strict",
            action="store_true",
            help="Fail (non-zero exit) if any error is found.",
        )

    def handle(self, *args, **options):
        strict = bool(options.get("strict"))
        sku = (options.get("sku") or "").strip().upper()

        products = Product.objects.order_by("sku")
        if sku:
            products = products.filter(sku=sku)
            if not products.exists():
                self.stderr.write(self.style.ERROR(f"Unknown SKU: {sku}"))
                return self._exit(strict)

        self.stdout.write(self.style.MIGRATE_HEADING("Stock Ledger Validation"))
        self.stdout.write(f"Products checked: {products.count()}")
        self.stdout.write("")

        errors = 0

        # -----------------------------
        # 1) Product balances
        # -----------------------------
        drifted = []
        for product in products.iterator():
            result = reconcile_product(product)
            if not result.ok:
                drifted.append((product.sku, result.expected_stock, result.current_stock))

        if drifted:
            errors += len(drifted)
            self.stderr.write(self.style.ERROR(f"[FAIL] Products out of balance: {len(drifted)}"))
            for product_sku, expected, current in drifted[:10]:
                self.stderr.write(f"  sku={product_sku} expected={expected} current={current}")
        else:
            self.stdout.write(self.style.SUCCESS("[OK] current_stock == opening_stock + sum(movements)"))

        # -----------------------------
        # 2) Movement arithmetic
        # -----------------------------
        broken = StockMovement.objects.exclude(stock_after=F("stock_before") + F("quantity"))
        if sku:
            broken = broken.filter(product__sku=sku)
        broken_count = broken.count()

        if broken_count:
            errors += broken_count
            self.stderr.write(self.style.ERROR(f"[FAIL] Movements with stock_after != stock_before + quantity: {broken_count}"))
            for movement_id in broken.values_list("id", flat=True)[:10]:
                self.stderr.write(f"  movement_id={movement_id}")
        else:
            self.stdout.write(self.style.SUCCESS("[OK] Movement arithmetic is consistent"))

        # -----------------------------
        # 3) Delivered shipments fully received
        # -----------------------------
        pending = (
            Shipment.objects.filter(
                status=Shipment.Status.DELIVERED,
                purchase_order__items__received_qty__lt=F("purchase_order__items__quantity"),
            )
            .values_list("shipment_number", flat=True)
            .distinct()
        )
        pending = list(pending)

        if pending:
            errors += len(pending)
            self.stderr.write(
                self.style.ERROR(f"[FAIL] Delivered shipments not fully received: {len(pending)}")
            )
            self.stderr.write("  Re-run delivery processing for: " + ", ".join(pending[:10]))
        else:
            self.stdout.write(self.style.SUCCESS("[OK] Every delivered shipment is received into stock"))

        self.stdout.write("")
        if errors == 0:
            self.stdout.write(self.style.SUCCESS("VALIDATION PASSED"))
        else:
            self.stderr.write(self.style.ERROR(f"VALIDATION FOUND ISSUES: {errors} problem(s)"))

        return self._exit(strict and errors > 0)

    def _exit(self, fail: bool):
        if fail:
            raise SystemExit(1)
        return None
