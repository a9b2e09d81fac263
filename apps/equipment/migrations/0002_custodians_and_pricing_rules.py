import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("users", "0001_initial"),
        ("equipment", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="StorageCustodian",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255)),
                ("role", models.CharField(blank=True, help_text="e.g. Zone equipment officer", max_length=255)),
                ("email", models.EmailField(blank=True, max_length=254)),
                ("phone", models.CharField(blank=True, max_length=20)),
                ("storage_address", models.CharField(blank=True, max_length=255)),
                ("access_instructions", models.TextField(blank=True)),
                ("available_hours", models.CharField(blank=True, max_length=255)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "equipment",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="storage_custodians",
                        to="equipment.equipmentitem",
                    ),
                ),
                (
                    "zone",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="storage_custodians",
                        to="users.zone",
                    ),
                ),
            ],
            options={
                "verbose_name": "Storage custodian",
                "verbose_name_plural": "Storage custodians",
                "ordering": ["zone", "equipment", "name"],
            },
        ),
        migrations.CreateModel(
            name="PricingRule",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "category",
                    models.CharField(
                        blank=True,
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
                        max_length=32,
                    ),
                ),
                ("club_name", models.CharField(blank=True, help_text="Blank applies to every club.", max_length=255)),
                ("price_per_day", models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ("price_per_week", models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                (
                    "discount_percentage",
                    models.DecimalField(
                        blank=True,
                        decimal_places=2,
                        max_digits=5,
                        null=True,
                        validators=[
                            django.core.validators.MinValueValidator(0),
                            django.core.validators.MaxValueValidator(100),
                        ],
                    ),
                ),
                ("minimum_charge", models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ("valid_from", models.DateTimeField(blank=True, null=True)),
                ("valid_until", models.DateTimeField(blank=True, null=True)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("created_by", models.CharField(blank=True, max_length=64)),
                (
                    "equipment",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="pricing_rules",
                        to="equipment.equipmentitem",
                    ),
                ),
                (
                    "zone",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="pricing_rules",
                        to="users.zone",
                    ),
                ),
            ],
            options={
                "verbose_name": "Pricing rule",
                "verbose_name_plural": "Pricing rules",
                "ordering": ["zone", "id"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            ("discount_percentage__isnull", True),
                            models.Q(("discount_percentage__gte", 0), ("discount_percentage__lte", 100)),
                            _connector="OR",
                        ),
                        name="pricing_rule_discount_range",
                    )
                ],
            },
        ),
    ]
