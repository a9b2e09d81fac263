"""Admin registration for notifications."""

from __future__ import annotations

from django.contrib import admin  # type: ignore

from .models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ("title", "user", "event_kind", "booking", "is_read", "created_at")
    list_filter = ("event_kind", "is_read")
    search_fields = ("title", "message", "user__email", "booking__booking_reference")
    readonly_fields = ("created_at",)
