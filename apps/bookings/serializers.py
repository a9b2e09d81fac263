"""Serializers for the booking domain."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import AutomationSetting, EquipmentBooking


class BookingSerializer(serializers.ModelSerializer):
    """Stored booking as returned by list, detail and write endpoints."""

    equipment_id = serializers.ReadOnlyField()
    equipment_name = serializers.ReadOnlyField(source="equipment.name")
    zone_id = serializers.ReadOnlyField()
    requester_id = serializers.ReadOnlyField()
    pricing_rule_id = serializers.ReadOnlyField()
    status_label = serializers.CharField(source="get_status_display", read_only=True)

    class Meta:
        model = EquipmentBooking
        fields = [
            "id",
            "booking_reference",
            "equipment_id",
            "equipment_name",
            "zone_id",
            "requester_id",
            "requester_name",
            "requester_email",
            "requester_phone",
            "club_name",
            "event_name",
            "pickup_at",
            "return_at",
            "status",
            "status_label",
            "approved_by",
            "approved_at",
            "auto_approved",
            "rejection_reason",
            "cancelled_at",
            "cancelled_by",
            "currency",
            "duration_days",
            "subtotal",
            "discount",
            "deposit",
            "bond",
            "total_price",
            "pricing_rule_id",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class BookingCreateSerializer(serializers.Serializer):
    """Booking request. Contact fields default to the requesting user's profile."""

    equipment = serializers.UUIDField()
    zone = serializers.IntegerField(required=False, allow_null=True)
    pickup_at = serializers.DateTimeField()
    return_at = serializers.DateTimeField()
    requester_name = serializers.CharField(required=False, allow_blank=True, max_length=255)
    requester_email = serializers.EmailField(required=False, allow_blank=True)
    requester_phone = serializers.CharField(required=False, allow_blank=True, max_length=20)
    club_name = serializers.CharField(required=False, allow_blank=True, max_length=255)
    event_name = serializers.CharField(required=False, allow_blank=True, max_length=255)


class RejectBookingSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class CancelBookingSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class TransitionBookingSerializer(serializers.Serializer):
    status = serializers.ChoiceField(
        choices=[
            EquipmentBooking.Status.CONFIRMED,
            EquipmentBooking.Status.PICKED_UP,
            EquipmentBooking.Status.IN_USE,
        ]
    )


class RescheduleBookingSerializer(serializers.Serializer):
    pickup_at = serializers.DateTimeField()
    return_at = serializers.DateTimeField()


class AvailabilityQuerySerializer(serializers.Serializer):
    start = serializers.DateTimeField()
    end = serializers.DateTimeField()
    exclude_booking_id = serializers.UUIDField(required=False, allow_null=True)


class ChainQuerySerializer(serializers.Serializer):
    start = serializers.DateTimeField(required=False)
    end = serializers.DateTimeField(required=False)


class ScheduledBookingSerializer(serializers.Serializer):
    """A booking as the scheduler sees it, serialized from the domain aggregate."""

    id = serializers.UUIDField()
    booking_reference = serializers.CharField(source="reference")
    status = serializers.CharField(source="status.value")
    pickup_at = serializers.DateTimeField()
    return_at = serializers.DateTimeField()
    requester_id = serializers.IntegerField(allow_null=True)
    requester_name = serializers.CharField(source="requester.name")
    requester_email = serializers.CharField(source="requester.email")
    requester_phone = serializers.CharField(source="requester.phone")
    club_name = serializers.CharField(source="requester.club_name")
    event_name = serializers.CharField()
    auto_approved = serializers.BooleanField()


def serialize_scheduled(booking) -> dict | None:
    if booking is None:
        return None
    return ScheduledBookingSerializer(booking).data


class AutomationSettingSerializer(serializers.ModelSerializer):
    class Meta:
        model = AutomationSetting
        fields = ["setting_type", "enabled", "updated_at", "updated_by"]
        read_only_fields = fields


class AutomationUpdateSerializer(serializers.Serializer):
    setting_type = serializers.ChoiceField(choices=AutomationSetting.SettingType.choices)
    enabled = serializers.BooleanField()
    process_existing = serializers.BooleanField(required=False, default=False)
