"""Serializers for notifications."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    """Serializer for notifications."""

    booking_reference = serializers.CharField(source='booking.booking_reference', read_only=True, default=None)

    class Meta:
        model = Notification
        fields = [
            'id',
            'user',
            'booking',
            'booking_reference',
            'event_kind',
            'title',
            'message',
            'is_read',
            'created_at',
        ]
        read_only_fields = fields
