"""
Booking Command Handlers

These are the write use cases for equipment bookings. Each one runs inside a
unit of work; domain events are published only after the transaction
commits.

Commands:
- CreateBookingCommand: Request an equipment item for a date range
- ApproveBookingCommand: Manager approval of a pending booking
- RejectBookingCommand: Manager rejection of a pending booking
- CancelBookingCommand: Cancel a live booking
- AdvanceBookingCommand: approved -> confirmed -> picked_up -> in_use
- RescheduleBookingCommand: Move a booking to a new range
- UpdateAutomationSettingCommand: Toggle zone automation, optionally
  auto-approving the pending backlog
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional
from uuid import UUID
import logging

from shared.application.uow import DjangoUnitOfWork
from shared.domain.base import utcnow
from shared.domain.exceptions import (
    BookingValidationError,
    ConcurrentModificationError,
    ConflictError,
    ForbiddenError,
    InvalidTransitionError,
    StaleScheduleError,
)
from shared.domain.value_objects import BookingPeriod
from apps.bookings.domain.entities import (
    AUTO_APPROVER,
    RESCHEDULABLE_STATUSES,
    AutomationSettings,
    Booking,
    BookingStatus,
    RequesterInfo,
)
from apps.bookings.domain.pricing import PriceQuote, quote_price, select_pricing_rule
from apps.bookings.domain.scheduling import check_availability, resolve_handover

logger = logging.getLogger(__name__)

AUTOMATION_SETTING_TYPES = ('auto_approval', 'auto_email')


# ===== Commands =====

@dataclass
class CreateBookingCommand:
    """
    Command to request an equipment item

    `automation` is the zone's automation settings at call time. When it is
    None the handler looks them up for the equipment's zone.
    """
    equipment_id: Optional[UUID]
    requester_id: Optional[int]
    pickup_at: Optional[datetime]
    return_at: Optional[datetime]
    zone_id: Optional[int] = None
    requester_name: str = ''
    requester_email: str = ''
    requester_phone: str = ''
    club_name: str = ''
    event_name: str = ''
    automation: Optional[AutomationSettings] = None


@dataclass
class ApproveBookingCommand:
    booking_id: UUID
    approver_id: int


@dataclass
class RejectBookingCommand:
    booking_id: UUID
    reason: str
    rejected_by: int


@dataclass
class CancelBookingCommand:
    """Cancel by a zone manager or by the booking's requester"""
    booking_id: UUID
    cancelled_by: int
    reason: str = ''


@dataclass
class AdvanceBookingCommand:
    booking_id: UUID
    target_status: str
    actor_id: int


@dataclass
class RescheduleBookingCommand:
    booking_id: UUID
    pickup_at: datetime
    return_at: datetime
    actor_id: int


@dataclass
class UpdateAutomationSettingCommand:
    zone_id: int
    setting_type: str
    enabled: bool
    actor_id: int
    process_existing: bool = False


@dataclass
class AutomationUpdateResult:
    settings: AutomationSettings
    processed: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)


# ===== Helpers =====

def _setting(name: str, default):
    from django.conf import settings
    return getattr(settings, name, default)


def run_with_schedule_retries(operation: Callable, max_attempts: int, description: str):
    """
    Run `operation` until it completes without a StaleScheduleError.

    Each attempt is a fresh transaction. Running out of attempts raises
    ConcurrentModificationError.
    """
    for attempt in range(1, max_attempts + 1):
        try:
            return operation()
        except StaleScheduleError as e:
            logger.warning(
                f"{description}: schedule changed concurrently "
                f"(attempt {attempt}/{max_attempts}): {e}"
            )
    raise ConcurrentModificationError(
        f"{description} gave up after {max_attempts} attempts: "
        "the equipment schedule kept changing",
        attempts=max_attempts,
    )


# ===== Command Handlers =====

class BookingCommandHandler:
    """
    Shared wiring for booking handlers

    Repositories and the authorizer default to the Django implementations;
    tests pass in-memory fakes together with a matching `uow_factory`.
    """

    def __init__(
        self,
        booking_repo=None,
        equipment_repo=None,
        automation_repo=None,
        authorizer=None,
        uow_factory: Callable = DjangoUnitOfWork,
        max_attempts: Optional[int] = None,
        currency: Optional[str] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        if booking_repo is None or equipment_repo is None or automation_repo is None:
            from apps.bookings.repositories import (
                DjangoAutomationSettingsRepository,
                DjangoBookingRepository,
                DjangoEquipmentRepository,
            )
            booking_repo = booking_repo or DjangoBookingRepository()
            equipment_repo = equipment_repo or DjangoEquipmentRepository()
            automation_repo = automation_repo or DjangoAutomationSettingsRepository()
        if authorizer is None:
            from apps.users.authorization import UserZoneAuthorizer
            authorizer = UserZoneAuthorizer()

        self.booking_repo = booking_repo
        self.equipment_repo = equipment_repo
        self.automation_repo = automation_repo
        self.authorizer = authorizer
        self.uow_factory = uow_factory
        self.max_attempts = max_attempts or _setting('BOOKING_CREATE_MAX_ATTEMPTS', 3)
        self.currency = currency or _setting('BOOKING_CURRENCY', 'AUD')
        self.clock = clock

    def _require_zone_manager(self, caller_id, zone_id, action: str):
        if not self.authorizer.is_zone_manager(caller_id, zone_id):
            raise ForbiddenError(f"User {caller_id} may not {action} bookings in zone {zone_id}")

    def _require_manager_or_requester(self, caller_id, booking: Booking, action: str):
        if caller_id is not None and caller_id == booking.requester_id:
            return
        self._require_zone_manager(caller_id, booking.zone_id, action)

    def _handover_summary(self, booking: Booking, existing=None, equipment=None):
        equipment = equipment or self.equipment_repo.get(booking.equipment_id)
        if existing is None:
            existing = self.booking_repo.list_for_equipment(booking.equipment_id)
        view = resolve_handover(booking, existing)
        return view.summary(
            storage_location=equipment.storage_location,
            storage=self.equipment_repo.get_storage_contact(equipment.id, equipment.zone_id),
        )

    def _departing_handover(self, booking: Booking):
        """Where a booking about to leave its chain sits in it, None when it is not live"""
        if not booking.is_live:
            return None
        return self._handover_summary(booking)

    def _quote(self, equipment, period: BookingPeriod, club_name: str = '') -> PriceQuote:
        rule = select_pricing_rule(
            self.equipment_repo.list_pricing_rules(equipment.zone_id),
            equipment,
            club_name=club_name,
            at=period.start,
        )
        if rule is not None:
            logger.info(f"Pricing rule {rule.id} applies to {equipment.id} for {period}")
        return quote_price(equipment, period, self.currency, rule=rule)


class CreateBookingHandler(BookingCommandHandler):
    """
    Handler for CreateBooking

    The availability check and the insert run in one transaction per
    attempt:
    1. Lock the equipment row where supported and read its schedule version
    2. Re-run the availability check against the live bookings
    3. Build the booking, pending or auto-approved
    4. Bump the schedule version conditionally on the value read in step 1
    5. Insert the booking and collect its events

    A concurrent writer makes step 4 fail; the attempt rolls back and is
    retried. Events are published after commit.
    """

    def handle(self, command: CreateBookingCommand) -> Booking:
        missing = [
            name for name in ('equipment_id', 'requester_id', 'pickup_at', 'return_at')
            if getattr(command, name) in (None, '')
        ]
        if missing:
            raise BookingValidationError(
                f"Missing required fields: {', '.join(missing)}", missing_fields=missing
            )

        period = BookingPeriod(command.pickup_at, command.return_at)
        equipment = self.equipment_repo.get(command.equipment_id)
        if command.zone_id is not None and command.zone_id != equipment.zone_id:
            raise BookingValidationError(
                f"Equipment {equipment.id} does not belong to zone {command.zone_id}"
            )
        if not equipment.is_active:
            raise BookingValidationError(f"Equipment {equipment.id} is not available for booking")

        automation = command.automation
        if automation is None:
            automation = self.automation_repo.get_for_zone(equipment.zone_id)

        requester = RequesterInfo(
            requester_id=command.requester_id,
            name=command.requester_name,
            email=command.requester_email,
            phone=command.requester_phone,
            club_name=command.club_name,
        )

        logger.info(
            f"Creating booking for equipment {equipment.id}, "
            f"requester {command.requester_id}, period {period}"
        )

        def attempt() -> Booking:
            with self.uow_factory() as uow:
                current = self.equipment_repo.get(equipment.id, lock=True)
                existing = self.booking_repo.list_for_equipment(current.id)

                result = check_availability(period, existing, quantity=current.quantity)
                if not result.available:
                    raise ConflictError(
                        f"{current.name or current.id} is already booked for {period}",
                        conflicting_booking_ids=result.conflicting_ids,
                    )

                booking = Booking.request(
                    equipment=current,
                    requester=requester,
                    period=period,
                    automation=automation,
                    event_name=command.event_name,
                    quote=self._quote(current, period, requester.club_name),
                    at=self.clock(),
                )

                self.equipment_repo.bump_schedule_version(current.id, current.schedule_version)
                self.booking_repo.save(booking)
                uow.collect_events(booking)
            return booking

        booking = run_with_schedule_retries(
            attempt, self.max_attempts, f"Create booking for equipment {equipment.id}"
        )

        logger.info(
            f"Booking created: {booking.reference} (ID: {booking.id}, "
            f"status: {booking.status.value})"
        )
        return booking


class ApproveBookingHandler(BookingCommandHandler):
    """Manager approval; the event carries the handover summary"""

    def handle(self, command: ApproveBookingCommand) -> Booking:
        logger.info(f"Approving booking {command.booking_id} by {command.approver_id}")

        with self.uow_factory() as uow:
            booking = self.booking_repo.get_by_id(command.booking_id, lock=True)
            self._require_zone_manager(command.approver_id, booking.zone_id, 'approve')

            if booking.status != BookingStatus.PENDING:
                raise InvalidTransitionError(booking.status.value, 'approve')

            booking.approve(
                str(command.approver_id),
                handover=self._handover_summary(booking),
                at=self.clock(),
            )
            self.booking_repo.save(booking)
            uow.collect_events(booking)

        logger.info(f"Booking {booking.reference} approved")
        return booking


class RejectBookingHandler(BookingCommandHandler):
    """Manager rejection of a pending booking with a reason"""

    def handle(self, command: RejectBookingCommand) -> Booking:
        logger.info(f"Rejecting booking {command.booking_id} by {command.rejected_by}")

        with self.uow_factory() as uow:
            booking = self.booking_repo.get_by_id(command.booking_id, lock=True)
            self._require_zone_manager(command.rejected_by, booking.zone_id, 'reject')

            booking.reject(
                command.reason,
                rejected_by=str(command.rejected_by),
                at=self.clock(),
                handover=self._departing_handover(booking),
            )
            self.booking_repo.save(booking)
            uow.collect_events(booking)

        logger.info(f"Booking {booking.reference} rejected")
        return booking


class CancelBookingHandler(BookingCommandHandler):
    """
    Cancel a live booking

    Neighbouring bookings are not touched: chains and handovers are derived
    on read and pick up the change immediately.
    """

    def handle(self, command: CancelBookingCommand) -> Booking:
        logger.info(f"Cancelling booking {command.booking_id} by {command.cancelled_by}")

        with self.uow_factory() as uow:
            booking = self.booking_repo.get_by_id(command.booking_id, lock=True)
            self._require_manager_or_requester(command.cancelled_by, booking, 'cancel')

            booking.cancel(
                str(command.cancelled_by),
                reason=command.reason,
                at=self.clock(),
                handover=self._departing_handover(booking),
            )
            self.booking_repo.save(booking)
            uow.collect_events(booking)

        logger.info(f"Booking {booking.reference} cancelled")
        return booking


class AdvanceBookingHandler(BookingCommandHandler):
    """Manager moves along approved -> confirmed -> picked_up -> in_use"""

    def handle(self, command: AdvanceBookingCommand) -> Booking:
        with self.uow_factory() as uow:
            booking = self.booking_repo.get_by_id(command.booking_id, lock=True)
            self._require_zone_manager(command.actor_id, booking.zone_id, 'update')

            try:
                target = BookingStatus(command.target_status)
            except ValueError:
                raise InvalidTransitionError(
                    booking.status.value, f"move to {command.target_status}"
                ) from None

            booking.advance(target, actor=str(command.actor_id), at=self.clock())
            self.booking_repo.save(booking)
            uow.collect_events(booking)

        logger.info(f"Booking {booking.reference} moved to {booking.status.value}")
        return booking


class RescheduleBookingHandler(BookingCommandHandler):
    """
    Move a booking to a new range

    Availability is re-checked with the booking itself excluded, under the
    same versioned retry as creation.
    """

    def handle(self, command: RescheduleBookingCommand) -> Booking:
        period = BookingPeriod(command.pickup_at, command.return_at)
        logger.info(f"Rescheduling booking {command.booking_id} to {period}")

        def attempt() -> Booking:
            with self.uow_factory() as uow:
                booking = self.booking_repo.get_by_id(command.booking_id, lock=True)
                self._require_manager_or_requester(command.actor_id, booking, 'reschedule')
                if booking.status not in RESCHEDULABLE_STATUSES:
                    raise InvalidTransitionError(booking.status.value, 'reschedule')

                equipment = self.equipment_repo.get(booking.equipment_id, lock=True)
                existing = self.booking_repo.list_for_equipment(equipment.id)
                result = check_availability(
                    period,
                    existing,
                    quantity=equipment.quantity,
                    exclude_booking_id=booking.id,
                )
                if not result.available:
                    raise ConflictError(
                        f"{equipment.name or equipment.id} is already booked for {period}",
                        conflicting_booking_ids=result.conflicting_ids,
                    )

                booking.reschedule(
                    period,
                    actor=str(command.actor_id),
                    quote=self._quote(equipment, period, booking.requester.club_name),
                    at=self.clock(),
                )
                self.equipment_repo.bump_schedule_version(equipment.id, equipment.schedule_version)
                self.booking_repo.save(booking)
                uow.collect_events(booking)
            return booking

        booking = run_with_schedule_retries(
            attempt, self.max_attempts, f"Reschedule booking {command.booking_id}"
        )
        logger.info(f"Booking {booking.reference} rescheduled to {period}")
        return booking


class UpdateAutomationSettingHandler(BookingCommandHandler):
    """
    Toggle a zone automation flag

    Turning auto-approval on with `process_existing` approves every pending
    booking of the zone that has a valid requester and no conflict with the
    other live bookings of its item.
    """

    def handle(self, command: UpdateAutomationSettingCommand) -> AutomationUpdateResult:
        if command.setting_type not in AUTOMATION_SETTING_TYPES:
            raise BookingValidationError(
                f"Unknown automation setting '{command.setting_type}'",
                missing_fields=['setting_type'],
            )
        self._require_zone_manager(command.actor_id, command.zone_id, 'configure automation for')

        with self.uow_factory() as uow:
            settings = self.automation_repo.set(
                command.zone_id,
                command.setting_type,
                command.enabled,
                updated_by=str(command.actor_id),
            )
            result = AutomationUpdateResult(settings=settings)

            if command.setting_type == 'auto_approval' and command.enabled and command.process_existing:
                for candidate in self.booking_repo.list_pending_for_zone(command.zone_id):
                    # Another writer may have moved it on since the listing
                    booking = self.booking_repo.get_by_id(candidate.id, lock=True)
                    if booking.status != BookingStatus.PENDING:
                        logger.info(
                            f"Booking {booking.reference} is {booking.status.value} now, "
                            "leaving it out of bulk auto-approval"
                        )
                        continue
                    if self._auto_approve(booking):
                        self.booking_repo.save(booking)
                        uow.collect_events(booking)
                        result.processed.append(booking.reference)
                    else:
                        result.skipped.append(booking.reference)

        logger.info(
            f"Automation {command.setting_type}={command.enabled} for zone {command.zone_id}: "
            f"{len(result.processed)} auto-approved, {len(result.skipped)} skipped"
        )
        return result

    def _auto_approve(self, booking: Booking) -> bool:
        if not booking.requester.is_valid:
            return False

        equipment = self.equipment_repo.get(booking.equipment_id)
        existing = self.booking_repo.list_for_equipment(booking.equipment_id)
        availability = check_availability(
            booking.period,
            existing,
            quantity=equipment.quantity,
            exclude_booking_id=booking.id,
        )
        if not availability.available:
            return False

        booking.approve(
            AUTO_APPROVER,
            handover=self._handover_summary(booking, existing, equipment),
            at=self.clock(),
            automatic=True,
        )
        return True
