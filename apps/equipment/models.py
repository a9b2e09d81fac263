"""Equipment models."""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.core.validators import MaxValueValidator, MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class EquipmentItem(models.Model):
    """A piece of shared equipment owned by a zone."""

    class Category(models.TextChoices):
        JUMPS = "jumps", _("Jumps")
        TENT = "tent", _("Tent")
        TRAILER = "trailer", _("Trailer")
        SOUND_SYSTEM = "sound_system", _("Sound system")
        MARQUEE = "marquee", _("Marquee")
        ARENA_EQUIPMENT = "arena_equipment", _("Arena equipment")
        SAFETY_EQUIPMENT = "safety_equipment", _("Safety equipment")
        OTHER = "other", _("Other")

    class PricingType(models.TextChoices):
        PER_DAY = "per_day", _("Per day")
        FLAT_FEE = "flat_fee", _("Flat fee")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    zone = models.ForeignKey(
        "users.Zone",
        on_delete=models.PROTECT,
        related_name="equipment",
    )
    name = models.CharField(max_length=255)
    category = models.CharField(max_length=32, choices=Category.choices, default=Category.OTHER)
    description = models.TextField(blank=True)
    quantity = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    pricing_type = models.CharField(
        max_length=16,
        choices=PricingType.choices,
        default=PricingType.PER_DAY,
    )
    base_price_per_day = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal("0.00")
    )
    base_price_per_week = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        help_text=_("Used for whole weeks of per-day hire when set."),
    )
    deposit_required = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal("0.00")
    )
    bond_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    requires_trailer = models.BooleanField(default=False)
    storage_location = models.CharField(max_length=255, blank=True)
    is_active = models.BooleanField(default=True)
    schedule_version = models.PositiveIntegerField(
        default=0,
        editable=False,
        help_text=_("Bumped by every write that adds or moves a booking of this item."),
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Equipment item")
        verbose_name_plural = _("Equipment items")
        ordering = ["zone", "name"]
        indexes = [
            models.Index(fields=["zone", "category"], name="equipment_zone_category_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="equipment_quantity_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.get_category_display()})"


class StorageCustodian(models.Model):
    """
    Person who holds equipment while it sits in storage.

    A custodian with no equipment item covers every item of the zone; an
    item-specific custodian takes precedence over the zone-wide one.
    """

    zone = models.ForeignKey(
        "users.Zone",
        on_delete=models.CASCADE,
        related_name="storage_custodians",
    )
    equipment = models.ForeignKey(
        EquipmentItem,
        on_delete=models.CASCADE,
        related_name="storage_custodians",
        null=True,
        blank=True,
    )
    name = models.CharField(max_length=255)
    role = models.CharField(max_length=255, blank=True, help_text=_("e.g. Zone equipment officer"))
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=20, blank=True)
    storage_address = models.CharField(max_length=255, blank=True)
    access_instructions = models.TextField(blank=True)
    available_hours = models.CharField(max_length=255, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Storage custodian")
        verbose_name_plural = _("Storage custodians")
        ordering = ["zone", "equipment", "name"]

    def __str__(self) -> str:
        scope = self.equipment.name if self.equipment_id else _("all equipment")
        return f"{self.name} ({scope})"


class PricingRule(models.Model):
    """Zone price override for an item, a category and/or a club."""

    zone = models.ForeignKey(
        "users.Zone",
        on_delete=models.CASCADE,
        related_name="pricing_rules",
    )
    equipment = models.ForeignKey(
        EquipmentItem,
        on_delete=models.CASCADE,
        related_name="pricing_rules",
        null=True,
        blank=True,
    )
    category = models.CharField(max_length=32, choices=EquipmentItem.Category.choices, blank=True)
    club_name = models.CharField(max_length=255, blank=True, help_text=_("Blank applies to every club."))
    price_per_day = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    price_per_week = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    discount_percentage = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(0), MaxValueValidator(100)],
    )
    minimum_charge = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    valid_from = models.DateTimeField(null=True, blank=True)
    valid_until = models.DateTimeField(null=True, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    created_by = models.CharField(max_length=64, blank=True)

    class Meta:
        verbose_name = _("Pricing rule")
        verbose_name_plural = _("Pricing rules")
        ordering = ["zone", "id"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(discount_percentage__isnull=True)
                | models.Q(discount_percentage__gte=0, discount_percentage__lte=100),
                name="pricing_rule_discount_range",
            ),
        ]

    def __str__(self) -> str:
        target = self.equipment.name if self.equipment_id else (self.get_category_display() or _("all equipment"))
        return f"{target} / {self.club_name or _('all clubs')}"
