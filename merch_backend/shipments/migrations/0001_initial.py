import uuid
from decimal import Decimal

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("purchases", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="ShippingCompany",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=200, unique=True)),
                ("contact_person", models.CharField(blank=True, default="", max_length=200)),
                ("phone", models.CharField(blank=True, default="", max_length=50)),
                ("email", models.EmailField(blank=True, default="", max_length=254)),
                ("rate_per_kg", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("rate_per_cbm", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("min_charge", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "verbose_name_plural": "shipping companies",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="Shipment",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("shipment_number", models.CharField(max_length=32, unique=True)),
                (
                    "method",
                    models.CharField(
                        choices=[("sea", "Sea Freight"), ("air", "Air Freight"), ("courier", "Courier")],
                        default="sea",
                        max_length=10,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("in_transit", "In Transit"),
                            ("customs", "Customs"),
                            ("delivered", "Delivered"),
                        ],
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("tracking_number", models.CharField(blank=True, default="", max_length=100)),
                ("departure_date", models.DateField(blank=True, null=True)),
                ("estimated_arrival", models.DateField(blank=True, null=True)),
                ("actual_arrival", models.DateTimeField(blank=True, null=True)),
                ("total_weight", models.DecimalField(blank=True, decimal_places=3, max_digits=12, null=True)),
                ("total_volume", models.DecimalField(blank=True, decimal_places=3, max_digits=12, null=True)),
                ("shipping_cost", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=14)),
                ("customs_duty", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=14)),
                ("other_fees", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=14)),
                ("total_cost", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=14)),
                (
                    "payment_status",
                    models.CharField(
                        choices=[("pending", "Pending"), ("partial", "Partial"), ("paid", "Paid")],
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("paid_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=14)),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="shipments_created",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "purchase_order",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="shipment",
                        to="purchases.purchaseorder",
                    ),
                ),
                (
                    "shipping_company",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="shipments",
                        to="shipments.shippingcompany",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["status", "created_at"], name="shipment_status_created_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            ("shipping_cost__gte", Decimal("0.00")),
                            ("customs_duty__gte", Decimal("0.00")),
                            ("other_fees__gte", Decimal("0.00")),
                        ),
                        name="shipment_charges_nonnegative",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            ("paid_amount__gte", Decimal("0.00")),
                            ("paid_amount__lte", models.F("total_cost")),
                        ),
                        name="shipment_paid_within_total",
                    ),
                ],
            },
        ),
    ]
