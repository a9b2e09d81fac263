"""Serializers for equipment."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import EquipmentItem


class EquipmentItemSerializer(serializers.ModelSerializer):
    zone_id = serializers.ReadOnlyField()
    zone_name = serializers.ReadOnlyField(source="zone.name")
    category_label = serializers.CharField(source="get_category_display", read_only=True)

    class Meta:
        model = EquipmentItem
        fields = [
            "id",
            "zone_id",
            "zone_name",
            "name",
            "category",
            "category_label",
            "description",
            "quantity",
            "pricing_type",
            "base_price_per_day",
            "base_price_per_week",
            "deposit_required",
            "bond_amount",
            "requires_trailer",
            "storage_location",
            "is_active",
        ]
        read_only_fields = fields
