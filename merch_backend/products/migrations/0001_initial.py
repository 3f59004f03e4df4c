import uuid
from decimal import Decimal

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Product",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("sku", models.CharField(max_length=64, unique=True)),
                ("name", models.CharField(db_index=True, max_length=255)),
                ("category", models.CharField(blank=True, default="", max_length=100)),
                ("brand", models.CharField(blank=True, default="", max_length=100)),
                ("cost_price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("wholesale_price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("retail_price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                (
                    "weight_kg",
                    models.DecimalField(
                        blank=True,
                        decimal_places=3,
                        help_text="Unit weight, used for weight-based landed cost allocation.",
                        max_digits=10,
                        null=True,
                    ),
                ),
                ("reorder_level", models.PositiveIntegerField(default=10)),
                ("moq", models.PositiveIntegerField(default=1, help_text="Minimum order quantity.")),
                ("opening_stock", models.PositiveIntegerField(default=0)),
                ("current_stock", models.PositiveIntegerField(default=0)),
                ("landed_cost", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("warehouse_location", models.CharField(blank=True, default="", max_length=100)),
                (
                    "status",
                    models.CharField(
                        choices=[("ACTIVE", "Active"), ("DISCONTINUED", "Discontinued")],
                        default="ACTIVE",
                        max_length=16,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["name"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("current_stock__gte", 0)),
                        name="product_current_stock_non_negative",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="StockMovement",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "movement_type",
                    models.CharField(
                        choices=[("in", "Stock In"), ("out", "Stock Out"), ("adjustment", "Adjustment")],
                        max_length=10,
                    ),
                ),
                (
                    "reason",
                    models.CharField(
                        choices=[
                            ("shipment_received", "Shipment Received"),
                            ("sale", "Sale"),
                            ("damage", "Damage"),
                            ("loss", "Loss"),
                            ("found", "Found"),
                            ("correction", "Correction"),
                            ("return", "Return"),
                            ("other", "Other"),
                        ],
                        max_length=20,
                    ),
                ),
                ("quantity", models.IntegerField()),
                ("stock_before", models.PositiveIntegerField()),
                ("stock_after", models.PositiveIntegerField()),
                ("unit_cost", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("landed_cost", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                (
                    "reference_type",
                    models.CharField(
                        choices=[
                            ("order", "Order"),
                            ("shipment", "Shipment"),
                            ("manual", "Manual"),
                        ],
                        max_length=20,
                    ),
                ),
                ("reference_id", models.UUIDField(blank=True, null=True)),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "performed_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="stock_movements",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="stock_movements",
                        to="products.product",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["product", "created_at"], name="stockmove_product_created_idx"),
                    models.Index(fields=["reference_type", "reference_id"], name="stockmove_reference_idx"),
                    models.Index(fields=["reason"], name="stockmove_reason_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("quantity", 0), _negated=True),
                        name="stockmove_quantity_non_zero",
                    )
                ],
            },
        ),
    ]
