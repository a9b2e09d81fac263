import uuid
from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("users", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="EquipmentItem",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=255)),
                (
                    "category",
                    models.CharField(
                        choices=[
                            ("jumps", "Jumps"),
                            ("tent", "Tent"),
                            ("trailer", "Trailer"),
                            ("sound_system", "Sound system"),
                            ("marquee", "Marquee"),
                            ("arena_equipment", "Arena equipment"),
                            ("safety_equipment", "Safety equipment"),
                            ("other", "Other"),
                        ],
                        default="other",
                        max_length=32,
                    ),
                ),
                ("description", models.TextField(blank=True)),
                (
                    "quantity",
                    models.PositiveIntegerField(
                        default=1, validators=[django.core.validators.MinValueValidator(1)]
                    ),
                ),
                (
                    "pricing_type",
                    models.CharField(
                        choices=[("per_day", "Per day"), ("flat_fee", "Flat fee")],
                        default="per_day",
                        max_length=16,
                    ),
                ),
                ("base_price_per_day", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=10)),
                (
                    "base_price_per_week",
                    models.DecimalField(
                        blank=True,
                        decimal_places=2,
                        help_text="Used for whole weeks of per-day hire when set.",
                        max_digits=10,
                        null=True,
                    ),
                ),
                ("deposit_required", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=10)),
                ("bond_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=10)),
                ("requires_trailer", models.BooleanField(default=False)),
                ("storage_location", models.CharField(blank=True, max_length=255)),
                ("is_active", models.BooleanField(default=True)),
                (
                    "schedule_version",
                    models.PositiveIntegerField(
                        default=0,
                        editable=False,
                        help_text="Bumped by every write that adds or moves a booking of this item.",
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "zone",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="equipment",
                        to="users.zone",
                    ),
                ),
            ],
            options={
                "verbose_name": "Equipment item",
                "verbose_name_plural": "Equipment items",
                "ordering": ["zone", "name"],
                "indexes": [models.Index(fields=["zone", "category"], name="equipment_zone_category_idx")],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("quantity__gte", 1)),
                        name="equipment_quantity_positive",
                    )
                ],
            },
        ),
    ]
