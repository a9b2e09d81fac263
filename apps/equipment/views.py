"""API views for equipment."""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend  # type: ignore
from rest_framework import permissions, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.filters import OrderingFilter, SearchFilter  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.bookings.application.query_handlers import SchedulingQueries
from apps.bookings.serializers import AvailabilityQuerySerializer, serialize_scheduled

from .models import EquipmentItem
from .serializers import EquipmentItemSerializer


class EquipmentItemViewSet(viewsets.ReadOnlyModelViewSet):
    """Browse equipment and check whether an item is free for a range."""

    queryset = EquipmentItem.objects.select_related("zone")
    serializer_class = EquipmentItemSerializer
    permission_classes = [permissions.IsAuthenticated]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]
    filterset_fields = ["zone", "category", "is_active", "requires_trailer"]
    search_fields = ["name", "description"]
    ordering_fields = ["name", "category", "base_price_per_day"]

    @action(detail=True, methods=["post"])
    def availability(self, request, pk=None):  # type: ignore
        query = AvailabilityQuerySerializer(data=request.data)
        query.is_valid(raise_exception=True)
        data = query.validated_data

        result = SchedulingQueries().check_availability(
            pk,
            data["start"],
            data["end"],
            exclude_booking_id=data.get("exclude_booking_id"),
        )
        return Response({
            "equipment_id": str(pk),
            "start": result.period.start.isoformat(),
            "end": result.period.end.isoformat(),
            "available": result.available,
            "quantity": result.quantity,
            "peak_concurrency": result.peak_concurrency,
            "conflicts": [serialize_scheduled(booking) for booking in result.conflicts],
        })
