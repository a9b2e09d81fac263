"""
Booking Domain Entities

Core business entities for equipment reservations:
- Booking: aggregate root for one reservation of one equipment item
- BookingStatus: lifecycle states and the allowed transitions between them
- EquipmentSnapshot: the scheduler's read-only view of an equipment item
- RequesterInfo: who asked for the item and how to reach them
- AutomationSettings: per-zone automation flags passed in explicitly
"""

import secrets
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID

from shared.domain.base import Aggregate, ValueObject, utcnow
from shared.domain.exceptions import BookingValidationError, InvalidTransitionError
from shared.domain.value_objects import BookingPeriod
from apps.bookings.domain.events import (
    BookingApproved,
    BookingCancelled,
    BookingRejected,
    BookingRequested,
    BookingRescheduled,
    BookingStatusAdvanced,
    HandoverSummary,
)
from apps.bookings.domain.pricing import PriceQuote

AUTO_APPROVER = 'auto-approval-system'


class BookingStatus(str, Enum):
    """
    Booking Status Finite State Machine

    State transitions:
    - PENDING -> APPROVED (manager or automation)
    - APPROVED -> CONFIRMED -> PICKED_UP -> IN_USE (manager actions)
    - any live state -> CANCELLED (cancel, or reject while pending)
    """
    PENDING = 'pending'
    APPROVED = 'approved'
    CONFIRMED = 'confirmed'
    PICKED_UP = 'picked_up'
    IN_USE = 'in_use'
    CANCELLED = 'cancelled'


LIVE_STATUSES = frozenset({
    BookingStatus.PENDING,
    BookingStatus.APPROVED,
    BookingStatus.CONFIRMED,
    BookingStatus.PICKED_UP,
    BookingStatus.IN_USE,
})

ALLOWED_TRANSITIONS = {
    BookingStatus.PENDING: {BookingStatus.APPROVED, BookingStatus.CANCELLED},
    BookingStatus.APPROVED: {BookingStatus.CONFIRMED, BookingStatus.CANCELLED},
    BookingStatus.CONFIRMED: {BookingStatus.PICKED_UP, BookingStatus.CANCELLED},
    BookingStatus.PICKED_UP: {BookingStatus.IN_USE, BookingStatus.CANCELLED},
    BookingStatus.IN_USE: {BookingStatus.CANCELLED},
    BookingStatus.CANCELLED: set(),
}

ADVANCE_TARGETS = (BookingStatus.CONFIRMED, BookingStatus.PICKED_UP, BookingStatus.IN_USE)

RESCHEDULABLE_STATUSES = frozenset({
    BookingStatus.PENDING,
    BookingStatus.APPROVED,
    BookingStatus.CONFIRMED,
})


def generate_reference(at: Optional[datetime] = None) -> str:
    """Human-readable booking reference, e.g. EQ-2025-3F9A1C"""
    year = (at or utcnow()).year
    return f"EQ-{year}-{secrets.token_hex(3).upper()}"


@dataclass(frozen=True)
class EquipmentSnapshot(ValueObject):
    id: UUID
    zone_id: int
    name: str = ''
    category: str = 'other'
    quantity: int = 1
    pricing_type: str = 'per_day'
    price_per_day: Decimal = Decimal('0')
    price_per_week: Optional[Decimal] = None
    deposit: Decimal = Decimal('0')
    bond: Decimal = Decimal('0')
    requires_trailer: bool = False
    storage_location: str = ''
    is_active: bool = True
    schedule_version: int = 0


@dataclass(frozen=True)
class RequesterInfo(ValueObject):
    requester_id: Optional[int]
    name: str = ''
    email: str = ''
    phone: str = ''
    club_name: str = ''

    @property
    def is_valid(self) -> bool:
        """Automation only trusts requesters it can identify and contact"""
        return self.requester_id is not None and bool(self.email.strip())


@dataclass(frozen=True)
class AutomationSettings(ValueObject):
    auto_approval: bool = False
    auto_email: bool = False

    @classmethod
    def disabled(cls) -> 'AutomationSettings':
        return cls()


@dataclass(kw_only=True, eq=False)
class Booking(Aggregate):
    """
    Booking Aggregate Root

    One requester holding one equipment item over [pickup_at, return_at).

    Key invariants:
    - pickup strictly precedes return
    - status only moves along ALLOWED_TRANSITIONS
    - cancellation is a status, the booking is never deleted
    """

    reference: str
    equipment_id: UUID
    zone_id: int
    requester: RequesterInfo
    period: BookingPeriod
    event_name: str = ''

    status: BookingStatus = BookingStatus.PENDING
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    auto_approved: bool = False
    rejection_reason: str = ''
    cancelled_at: Optional[datetime] = None
    cancelled_by: str = ''

    quote: Optional[PriceQuote] = field(default=None, repr=False)

    @classmethod
    def request(
        cls,
        *,
        equipment: EquipmentSnapshot,
        requester: RequesterInfo,
        period: BookingPeriod,
        automation: AutomationSettings,
        event_name: str = '',
        quote: Optional[PriceQuote] = None,
        reference: Optional[str] = None,
        at: Optional[datetime] = None,
    ) -> 'Booking':
        """
        Create a booking for an item whose availability was already checked.

        With auto-approval enabled and a valid requester the booking starts
        approved; otherwise it starts pending.
        """
        now = at or utcnow()
        booking = cls(
            reference=reference or generate_reference(now),
            equipment_id=equipment.id,
            zone_id=equipment.zone_id,
            requester=requester,
            period=period,
            event_name=event_name,
            quote=quote,
            created_at=now,
            updated_at=now,
        )

        if automation.auto_approval and requester.is_valid:
            booking.status = BookingStatus.APPROVED
            booking.approved_by = AUTO_APPROVER
            booking.approved_at = now
            booking.auto_approved = True

        booking.add_event(BookingRequested(
            aggregate_id=booking.id,
            **booking._event_fields(),
            pickup_at=period.start,
            return_at=period.end,
            auto_approved=booking.auto_approved,
        ))
        return booking

    @property
    def pickup_at(self) -> datetime:
        return self.period.start

    @property
    def return_at(self) -> datetime:
        return self.period.end

    @property
    def requester_id(self) -> Optional[int]:
        return self.requester.requester_id

    @property
    def is_live(self) -> bool:
        return self.status in LIVE_STATUSES

    def can_transition_to(self, target: BookingStatus) -> bool:
        return target in ALLOWED_TRANSITIONS[self.status]

    def _ensure_transition(self, target: BookingStatus, action: str):
        if not self.can_transition_to(target):
            raise InvalidTransitionError(self.status.value, action)

    def _event_fields(self) -> dict:
        return {
            'booking_id': self.id,
            'reference': self.reference,
            'equipment_id': self.equipment_id,
            'zone_id': self.zone_id,
            'requester_id': self.requester_id,
        }

    def approve(self, approved_by: str, handover: Optional[HandoverSummary] = None,
                at: Optional[datetime] = None, automatic: bool = False):
        """PENDING -> APPROVED"""
        self._ensure_transition(BookingStatus.APPROVED, 'approve')

        now = at or utcnow()
        self.status = BookingStatus.APPROVED
        self.approved_by = AUTO_APPROVER if automatic else str(approved_by)
        self.approved_at = now
        self.auto_approved = automatic
        self.touch(now)

        self.add_event(BookingApproved(
            aggregate_id=self.id,
            **self._event_fields(),
            approved_by=self.approved_by,
            auto_approved=automatic,
            handover=handover,
        ))

    def reject(self, reason: str, rejected_by: str = '', at: Optional[datetime] = None,
               handover: Optional[HandoverSummary] = None):
        """
        PENDING -> CANCELLED with a mandatory reason

        `handover` is where the booking sat in its chain before it left.
        """
        if self.status != BookingStatus.PENDING:
            raise InvalidTransitionError(self.status.value, 'reject')
        reason = (reason or '').strip()
        if not reason:
            raise BookingValidationError(
                "A rejection reason is required", missing_fields=['reason']
            )

        now = at or utcnow()
        self.status = BookingStatus.CANCELLED
        self.rejection_reason = reason
        self.cancelled_at = now
        self.cancelled_by = str(rejected_by)
        self.touch(now)

        self.add_event(BookingRejected(
            aggregate_id=self.id,
            **self._event_fields(),
            reason=reason,
            rejected_by=str(rejected_by),
            handover=handover,
        ))

    def cancel(self, cancelled_by: str = '', reason: str = '', at: Optional[datetime] = None,
               handover: Optional[HandoverSummary] = None):
        """Any live state -> CANCELLED; `handover` as for reject()"""
        self._ensure_transition(BookingStatus.CANCELLED, 'cancel')

        now = at or utcnow()
        previous_status = self.status
        self.status = BookingStatus.CANCELLED
        self.cancelled_at = now
        self.cancelled_by = str(cancelled_by)
        self.touch(now)

        self.add_event(BookingCancelled(
            aggregate_id=self.id,
            **self._event_fields(),
            previous_status=previous_status.value,
            cancelled_by=str(cancelled_by),
            reason=reason or '',
            handover=handover,
        ))

    def advance(self, target: BookingStatus, actor: str = '', at: Optional[datetime] = None):
        """APPROVED -> CONFIRMED -> PICKED_UP -> IN_USE, one step at a time"""
        target = BookingStatus(target)
        action = f"move to {target.value}"
        if target not in ADVANCE_TARGETS:
            raise InvalidTransitionError(self.status.value, action)
        self._ensure_transition(target, action)

        previous_status = self.status
        self.status = target
        self.touch(at)

        self.add_event(BookingStatusAdvanced(
            aggregate_id=self.id,
            **self._event_fields(),
            from_status=previous_status.value,
            to_status=target.value,
            actor=str(actor),
        ))

    def reschedule(self, period: BookingPeriod, actor: str = '',
                   quote: Optional[PriceQuote] = None, at: Optional[datetime] = None):
        """Move the booking to a new range; availability is the caller's job"""
        if self.status not in RESCHEDULABLE_STATUSES:
            raise InvalidTransitionError(self.status.value, 'reschedule')

        previous = self.period
        self.period = period
        if quote is not None:
            self.quote = quote
        self.touch(at)

        self.add_event(BookingRescheduled(
            aggregate_id=self.id,
            **self._event_fields(),
            previous_pickup_at=previous.start,
            previous_return_at=previous.end,
            pickup_at=period.start,
            return_at=period.end,
            actor=str(actor),
        ))

    def __str__(self):
        return f"Booking {self.reference} ({self.status.value})"
