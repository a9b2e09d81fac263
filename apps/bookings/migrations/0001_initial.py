import uuid
from decimal import Decimal

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("users", "0001_initial"),
        ("equipment", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="EquipmentBooking",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("booking_reference", models.CharField(editable=False, max_length=20, unique=True)),
                ("requester_name", models.CharField(blank=True, max_length=255)),
                ("requester_email", models.EmailField(blank=True, max_length=254)),
                ("requester_phone", models.CharField(blank=True, max_length=20)),
                ("club_name", models.CharField(blank=True, max_length=255)),
                ("event_name", models.CharField(blank=True, max_length=255)),
                ("pickup_at", models.DateTimeField()),
                ("return_at", models.DateTimeField()),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending approval"),
                            ("approved", "Approved"),
                            ("confirmed", "Confirmed"),
                            ("picked_up", "Picked up"),
                            ("in_use", "In use"),
                            ("cancelled", "Cancelled"),
                        ],
                        default="pending",
                        max_length=16,
                    ),
                ),
                ("approved_by", models.CharField(blank=True, max_length=64)),
                ("approved_at", models.DateTimeField(blank=True, null=True)),
                ("auto_approved", models.BooleanField(default=False)),
                ("rejection_reason", models.TextField(blank=True)),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                ("cancelled_by", models.CharField(blank=True, max_length=64)),
                ("currency", models.CharField(default="AUD", max_length=3)),
                ("duration_days", models.PositiveIntegerField(default=1)),
                ("subtotal", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("deposit", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("bond", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("total_price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("created_at", models.DateTimeField()),
                ("updated_at", models.DateTimeField()),
                (
                    "equipment",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="bookings",
                        to="equipment.equipmentitem",
                    ),
                ),
                (
                    "requester",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="equipment_bookings",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "zone",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="equipment_bookings",
                        to="users.zone",
                    ),
                ),
            ],
            options={
                "verbose_name": "Equipment booking",
                "verbose_name_plural": "Equipment bookings",
                "ordering": ["pickup_at", "booking_reference"],
                "indexes": [
                    models.Index(fields=["equipment", "status"], name="eq_booking_equipment_status"),
                    models.Index(fields=["zone", "status"], name="eq_booking_zone_status"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("return_at__gt", models.F("pickup_at"))),
                        name="eq_booking_return_after_pickup",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="AutomationSetting",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "setting_type",
                    models.CharField(
                        choices=[("auto_approval", "Auto approval"), ("auto_email", "Auto email")],
                        max_length=20,
                    ),
                ),
                ("enabled", models.BooleanField(default=False)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("updated_by", models.CharField(blank=True, max_length=64)),
                (
                    "zone",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="automation_settings",
                        to="users.zone",
                    ),
                ),
            ],
            options={
                "verbose_name": "Automation setting",
                "verbose_name_plural": "Automation settings",
                "ordering": ["zone", "setting_type"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("zone", "setting_type"), name="unique_zone_automation_setting"
                    )
                ],
            },
        ),
    ]
