"""
Booking Query Handlers

Read-side use cases. Availability, chains and handovers are computed from
the current live set on every call and never mutate anything.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID
import logging

from shared.domain.exceptions import ForbiddenError
from shared.domain.value_objects import BookingPeriod
from apps.bookings.domain.entities import Booking
from apps.bookings.domain.events import HandoverSummary
from apps.bookings.domain.scheduling import (
    AvailabilityResult,
    HandoverView,
    build_chain,
    check_availability,
    resolve_handover,
)

logger = logging.getLogger(__name__)


class SchedulingQueries:
    """
    Availability, chain and handover lookups for equipment items.

    Repositories and the authorizer default to the Django implementations;
    tests pass in-memory fakes.
    """

    def __init__(self, booking_repo=None, equipment_repo=None, authorizer=None):
        if booking_repo is None or equipment_repo is None:
            from apps.bookings.repositories import DjangoBookingRepository, DjangoEquipmentRepository
            booking_repo = booking_repo or DjangoBookingRepository()
            equipment_repo = equipment_repo or DjangoEquipmentRepository()
        if authorizer is None:
            from apps.users.authorization import UserZoneAuthorizer
            authorizer = UserZoneAuthorizer()
        self.booking_repo = booking_repo
        self.equipment_repo = equipment_repo
        self.authorizer = authorizer

    def check_availability(
        self,
        equipment_id: UUID,
        start: datetime,
        end: datetime,
        exclude_booking_id: Optional[UUID] = None,
    ) -> AvailabilityResult:
        equipment = self.equipment_repo.get(equipment_id)
        period = BookingPeriod(start, end)
        bookings = self.booking_repo.list_for_equipment(equipment.id)

        result = check_availability(
            period,
            bookings,
            quantity=equipment.quantity,
            exclude_booking_id=exclude_booking_id,
        )
        logger.debug(
            f"Availability of {equipment.id} for {period}: "
            f"available={result.available}, conflicts={len(result.conflicts)}"
        )
        return result

    def get_chain(self, equipment_id: UUID, start: datetime, end: datetime) -> List[Booking]:
        equipment = self.equipment_repo.get(equipment_id)
        window = BookingPeriod(start, end)
        return build_chain(self.booking_repo.list_for_equipment(equipment.id, window=window), window)

    def resolve_handover(self, booking_id: UUID) -> HandoverView:
        """Handover neighbours of a booking, without an authorization check"""
        booking = self.booking_repo.get_by_id(booking_id)
        return resolve_handover(booking, self.booking_repo.list_for_equipment(booking.equipment_id))

    def handover_summary(self, booking_id: UUID) -> HandoverSummary:
        """Current handover instructions of a live booking, storage custodian included"""
        view = self.resolve_handover(booking_id)
        equipment = self.equipment_repo.get(view.current.equipment_id)
        return view.summary(
            storage_location=equipment.storage_location,
            storage=self.storage_contact(equipment.id),
        )

    def storage_contact(self, equipment_id: UUID):
        equipment = self.equipment_repo.get(equipment_id)
        return self.equipment_repo.get_storage_contact(equipment.id, equipment.zone_id)

    def get_handover_chain(self, booking_id: UUID, caller_id) -> HandoverView:
        booking = self.booking_repo.get_by_id(booking_id)
        if not self.authorizer.is_zone_manager(caller_id, booking.zone_id):
            raise ForbiddenError(
                f"User {caller_id} may not view handovers for zone {booking.zone_id}"
            )
        return resolve_handover(booking, self.booking_repo.list_for_equipment(booking.equipment_id))
