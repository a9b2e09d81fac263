"""API views for equipment bookings.

Writes go through the message bus as commands; reads of chains and
handovers go through SchedulingQueries. Domain errors are rendered by the
project exception handler.
"""

from __future__ import annotations

from datetime import timedelta

from django.conf import settings  # type: ignore
from django.db.models import Q  # type: ignore
from django.utils import timezone  # type: ignore
from django_filters.rest_framework import DjangoFilterBackend  # type: ignore
from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.filters import OrderingFilter  # type: ignore
from rest_framework.response import Response  # type: ignore

from shared.application.message_bus import message_bus
from apps.users.authorization import UserZoneAuthorizer
from shared.domain.exceptions import ForbiddenError

from .application.command_handlers import (
    AdvanceBookingCommand,
    ApproveBookingCommand,
    CancelBookingCommand,
    CreateBookingCommand,
    RejectBookingCommand,
    RescheduleBookingCommand,
    UpdateAutomationSettingCommand,
)
from .application.query_handlers import SchedulingQueries
from .filters import EquipmentBookingFilterSet
from .models import EquipmentBooking
from .repositories import DjangoAutomationSettingsRepository
from .serializers import (
    AutomationSettingSerializer,
    AutomationUpdateSerializer,
    BookingCreateSerializer,
    BookingSerializer,
    CancelBookingSerializer,
    ChainQuerySerializer,
    RejectBookingSerializer,
    RescheduleBookingSerializer,
    TransitionBookingSerializer,
    serialize_scheduled,
)


def handover_payload(view, storage=None) -> dict:
    return {
        "previous": serialize_scheduled(view.previous),
        "current": serialize_scheduled(view.current),
        "next": serialize_scheduled(view.next),
        "position": view.position,
        "total_in_chain": view.total_in_chain,
        "is_first": view.is_first,
        "is_last": view.is_last,
        "pickup_method": view.pickup_method,
        "return_method": view.return_method,
        "storage": storage.to_dict() if storage is not None and view.uses_storage else None,
    }


class BookingViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """Equipment bookings: request, lifecycle actions, chain and handover."""

    queryset = EquipmentBooking.objects.select_related("equipment", "zone", "requester")
    serializer_class = BookingSerializer
    permission_classes = [permissions.IsAuthenticated]
    filter_backends = [DjangoFilterBackend, OrderingFilter]
    filterset_class = EquipmentBookingFilterSet
    ordering_fields = ["pickup_at", "return_at", "created_at", "booking_reference"]
    ordering = ["pickup_at", "booking_reference"]

    def get_queryset(self):  # type: ignore
        qs = super().get_queryset()
        user = self.request.user
        if getattr(user, "is_staff", False) or getattr(user, "is_superuser", False):
            return qs
        if hasattr(user, "is_super_admin") and user.is_super_admin():
            return qs
        if hasattr(user, "is_zone_manager") and user.is_zone_manager() and user.zone_id:
            return qs.filter(Q(zone_id=user.zone_id) | Q(requester=user))
        return qs.filter(requester=user)

    def _respond(self, booking, status_code=status.HTTP_200_OK) -> Response:
        row = EquipmentBooking.objects.select_related("equipment").get(pk=booking.id)
        return Response(BookingSerializer(row, context=self.get_serializer_context()).data, status=status_code)

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = BookingCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        user = request.user

        booking = message_bus.handle_command(CreateBookingCommand(
            equipment_id=data["equipment"],
            zone_id=data.get("zone"),
            requester_id=user.id,
            pickup_at=data["pickup_at"],
            return_at=data["return_at"],
            requester_name=data.get("requester_name") or user.display_name,
            requester_email=data.get("requester_email") or user.email,
            requester_phone=data.get("requester_phone") or (user.phone or ""),
            club_name=data.get("club_name") or user.club_name,
            event_name=data.get("event_name", ""),
        ))
        return self._respond(booking, status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"])
    def approve(self, request, pk=None):  # type: ignore
        booking = message_bus.handle_command(ApproveBookingCommand(booking_id=pk, approver_id=request.user.id))
        return self._respond(booking)

    @action(detail=True, methods=["post"])
    def reject(self, request, pk=None):  # type: ignore
        serializer = RejectBookingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = message_bus.handle_command(RejectBookingCommand(
            booking_id=pk,
            reason=serializer.validated_data["reason"],
            rejected_by=request.user.id,
        ))
        return self._respond(booking)

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):  # type: ignore
        serializer = CancelBookingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = message_bus.handle_command(CancelBookingCommand(
            booking_id=pk,
            cancelled_by=request.user.id,
            reason=serializer.validated_data["reason"],
        ))
        return self._respond(booking)

    @action(detail=True, methods=["post"])
    def transition(self, request, pk=None):  # type: ignore
        serializer = TransitionBookingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = message_bus.handle_command(AdvanceBookingCommand(
            booking_id=pk,
            target_status=serializer.validated_data["status"],
            actor_id=request.user.id,
        ))
        return self._respond(booking)

    @action(detail=True, methods=["post"])
    def reschedule(self, request, pk=None):  # type: ignore
        serializer = RescheduleBookingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = message_bus.handle_command(RescheduleBookingCommand(
            booking_id=pk,
            pickup_at=serializer.validated_data["pickup_at"],
            return_at=serializer.validated_data["return_at"],
            actor_id=request.user.id,
        ))
        return self._respond(booking)

    @action(detail=True, methods=["get"], url_path="handover-chain")
    def handover_chain(self, request, pk=None):  # type: ignore
        queries = SchedulingQueries()
        view = queries.get_handover_chain(pk, request.user.id)
        storage = queries.storage_contact(view.current.equipment_id)
        return Response(handover_payload(view, storage))

    @action(detail=False, methods=["get"], url_path=r"chain/(?P<equipment_id>[^/.]+)")
    def chain(self, request, equipment_id=None):  # type: ignore
        query = ChainQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        window_days = getattr(settings, "BOOKING_CHAIN_DEFAULT_WINDOW_DAYS", 30)
        now = timezone.now()
        start = query.validated_data.get("start") or now - timedelta(days=window_days)
        end = query.validated_data.get("end") or now + timedelta(days=window_days)

        chain = SchedulingQueries().get_chain(equipment_id, start, end)
        last = len(chain) - 1
        entries = []
        for index, booking in enumerate(chain):
            entry = dict(serialize_scheduled(booking))
            entry.update({"position": index + 1, "is_first": index == 0, "is_last": index == last})
            entries.append(entry)

        return Response({
            "equipment_id": str(equipment_id),
            "start": start.isoformat(),
            "end": end.isoformat(),
            "count": len(entries),
            "bookings": entries,
        })

    @action(detail=False, methods=["get", "post"], url_path=r"automation/(?P<zone_id>\d+)")
    def automation(self, request, zone_id=None):  # type: ignore
        zone_id = int(zone_id)
        repository = DjangoAutomationSettingsRepository()

        if request.method == "GET":
            if not UserZoneAuthorizer().is_zone_manager(request.user.id, zone_id):
                raise ForbiddenError(f"User {request.user.id} may not view automation for zone {zone_id}")
            settings_value = repository.get_for_zone(zone_id)
            return Response({
                "zone_id": zone_id,
                "auto_approval": settings_value.auto_approval,
                "auto_email": settings_value.auto_email,
                "settings": AutomationSettingSerializer(repository.list_for_zone(zone_id), many=True).data,
            })

        serializer = AutomationUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = message_bus.handle_command(UpdateAutomationSettingCommand(
            zone_id=zone_id,
            setting_type=serializer.validated_data["setting_type"],
            enabled=serializer.validated_data["enabled"],
            actor_id=request.user.id,
            process_existing=serializer.validated_data["process_existing"],
        ))
        return Response({
            "zone_id": zone_id,
            "auto_approval": result.settings.auto_approval,
            "auto_email": result.settings.auto_email,
            "processed": result.processed,
            "skipped": result.skipped,
        })
