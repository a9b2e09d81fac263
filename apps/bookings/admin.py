"""Admin registration for equipment bookings."""

from __future__ import annotations

from django.contrib import admin  # type: ignore

from .models import AutomationSetting, EquipmentBooking


@admin.register(EquipmentBooking)
class EquipmentBookingAdmin(admin.ModelAdmin):
    list_display = (
        "booking_reference",
        "equipment",
        "zone",
        "requester_name",
        "status",
        "pickup_at",
        "return_at",
        "auto_approved",
        "total_price",
    )
    list_filter = ("status", "zone", "auto_approved", "pickup_at")
    search_fields = ("booking_reference", "equipment__name", "requester_email", "club_name")
    readonly_fields = (
        "booking_reference",
        "status",
        "approved_by",
        "approved_at",
        "auto_approved",
        "cancelled_at",
        "cancelled_by",
        "created_at",
        "updated_at",
    )


@admin.register(AutomationSetting)
class AutomationSettingAdmin(admin.ModelAdmin):
    list_display = ("zone", "setting_type", "enabled", "updated_at", "updated_by")
    list_filter = ("setting_type", "enabled")
