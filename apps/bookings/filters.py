"""FilterSet definitions for booking listings."""

from __future__ import annotations

import django_filters  # type: ignore

from .models import EquipmentBooking


class EquipmentBookingFilterSet(django_filters.FilterSet):
    equipment = django_filters.UUIDFilter(field_name="equipment_id")
    zone = django_filters.NumberFilter(field_name="zone_id")
    status = django_filters.MultipleChoiceFilter(choices=EquipmentBooking.Status.choices)
    live = django_filters.BooleanFilter(method="filter_live")
    pickup_after = django_filters.IsoDateTimeFilter(field_name="pickup_at", lookup_expr="gte")
    pickup_before = django_filters.IsoDateTimeFilter(field_name="pickup_at", lookup_expr="lt")

    class Meta:
        model = EquipmentBooking
        fields = ["equipment", "zone", "status"]

    def filter_live(self, queryset, name, value):  # type: ignore
        if value is None:
            return queryset
        if value:
            return queryset.filter(status__in=EquipmentBooking.LIVE_STATUSES)
        return queryset.exclude(status__in=EquipmentBooking.LIVE_STATUSES)
