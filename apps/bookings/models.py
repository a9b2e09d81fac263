"""Equipment booking models."""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.conf import settings  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class EquipmentBooking(models.Model):
    """Reservation of one equipment item over [pickup_at, return_at)."""

    class Status(models.TextChoices):
        PENDING = "pending", _("Pending approval")
        APPROVED = "approved", _("Approved")
        CONFIRMED = "confirmed", _("Confirmed")
        PICKED_UP = "picked_up", _("Picked up")
        IN_USE = "in_use", _("In use")
        CANCELLED = "cancelled", _("Cancelled")

    LIVE_STATUSES = (
        Status.PENDING,
        Status.APPROVED,
        Status.CONFIRMED,
        Status.PICKED_UP,
        Status.IN_USE,
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    booking_reference = models.CharField(max_length=20, unique=True, editable=False)
    equipment = models.ForeignKey(
        "equipment.EquipmentItem",
        on_delete=models.PROTECT,
        related_name="bookings",
    )
    zone = models.ForeignKey(
        "users.Zone",
        on_delete=models.PROTECT,
        related_name="equipment_bookings",
    )
    requester = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="equipment_bookings",
    )
    requester_name = models.CharField(max_length=255, blank=True)
    requester_email = models.EmailField(blank=True)
    requester_phone = models.CharField(max_length=20, blank=True)
    club_name = models.CharField(max_length=255, blank=True)
    event_name = models.CharField(max_length=255, blank=True)

    pickup_at = models.DateTimeField()
    return_at = models.DateTimeField()
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.PENDING)

    approved_by = models.CharField(max_length=64, blank=True)
    approved_at = models.DateTimeField(null=True, blank=True)
    auto_approved = models.BooleanField(default=False)
    rejection_reason = models.TextField(blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancelled_by = models.CharField(max_length=64, blank=True)

    currency = models.CharField(max_length=3, default="AUD")
    duration_days = models.PositiveIntegerField(default=1)
    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    deposit = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    discount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    bond = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    total_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    pricing_rule = models.ForeignKey(
        "equipment.PricingRule",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="bookings",
    )

    created_at = models.DateTimeField()
    updated_at = models.DateTimeField()

    class Meta:
        verbose_name = _("Equipment booking")
        verbose_name_plural = _("Equipment bookings")
        ordering = ["pickup_at", "booking_reference"]
        indexes = [
            models.Index(fields=["equipment", "status"], name="eq_booking_equipment_status"),
            models.Index(fields=["zone", "status"], name="eq_booking_zone_status"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(return_at__gt=models.F("pickup_at")),
                name="eq_booking_return_after_pickup",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.booking_reference} ({self.get_status_display()})"

    @property
    def is_live(self) -> bool:
        return self.status in self.LIVE_STATUSES


class AutomationSetting(models.Model):
    """Per-zone automation flag, created lazily. A missing row reads as disabled."""

    class SettingType(models.TextChoices):
        AUTO_APPROVAL = "auto_approval", _("Auto approval")
        AUTO_EMAIL = "auto_email", _("Auto email")

    zone = models.ForeignKey(
        "users.Zone",
        on_delete=models.CASCADE,
        related_name="automation_settings",
    )
    setting_type = models.CharField(max_length=20, choices=SettingType.choices)
    enabled = models.BooleanField(default=False)
    updated_at = models.DateTimeField(auto_now=True)
    updated_by = models.CharField(max_length=64, blank=True)

    class Meta:
        verbose_name = _("Automation setting")
        verbose_name_plural = _("Automation settings")
        ordering = ["zone", "setting_type"]
        constraints = [
            models.UniqueConstraint(
                fields=["zone", "setting_type"],
                name="unique_zone_automation_setting",
            ),
        ]

    def __str__(self) -> str:
        state = "on" if self.enabled else "off"
        return f"{self.zone} {self.setting_type}: {state}"
