"""Admin registration for equipment."""

from __future__ import annotations

from django.contrib import admin  # type: ignore

from .models import EquipmentItem, PricingRule, StorageCustodian


@admin.register(EquipmentItem)
class EquipmentItemAdmin(admin.ModelAdmin):
    list_display = (
        "name",
        "zone",
        "category",
        "quantity",
        "pricing_type",
        "base_price_per_day",
        "is_active",
    )
    list_filter = ("zone", "category", "pricing_type", "is_active", "requires_trailer")
    search_fields = ("name", "description", "storage_location")
    readonly_fields = ("schedule_version", "created_at", "updated_at")


@admin.register(StorageCustodian)
class StorageCustodianAdmin(admin.ModelAdmin):
    list_display = ("name", "zone", "equipment", "phone", "email", "is_active")
    list_filter = ("zone", "is_active")
    search_fields = ("name", "email", "storage_address")


@admin.register(PricingRule)
class PricingRuleAdmin(admin.ModelAdmin):
    list_display = (
        "zone",
        "equipment",
        "category",
        "club_name",
        "price_per_day",
        "discount_percentage",
        "minimum_charge",
        "is_active",
    )
    list_filter = ("zone", "category", "is_active")
    search_fields = ("club_name", "equipment__name")
    readonly_fields = ("created_at",)
