"""
Booking Domain Events

Things that happened to an equipment booking. They are published after the
surrounding transaction commits and drive requester notifications.
`event_kind` is the short name the notification sink switches on.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from uuid import UUID

from shared.domain.base import DomainEvent


@dataclass(frozen=True)
class HandoverContact:
    """Who holds the item on the other side of a handover"""
    reference: str
    booking_id: Optional[UUID] = None
    name: str = ''
    email: str = ''
    phone: str = ''
    club_name: str = ''

    def to_dict(self) -> dict:
        return {
            'reference': self.reference,
            'booking_id': str(self.booking_id) if self.booking_id else None,
            'name': self.name,
            'email': self.email,
            'phone': self.phone,
            'club_name': self.club_name,
        }


@dataclass(frozen=True)
class StorageContact:
    """Custodian who releases and receives the item at its storage location"""
    name: str
    role: str = ''
    email: str = ''
    phone: str = ''
    address: str = ''
    access_instructions: str = ''
    available_hours: str = ''

    def to_dict(self) -> dict:
        return {
            'name': self.name,
            'role': self.role,
            'email': self.email,
            'phone': self.phone,
            'address': self.address,
            'access_instructions': self.access_instructions,
            'available_hours': self.available_hours,
        }


@dataclass(frozen=True)
class HandoverSummary:
    """
    Physical handover instructions for one booking.

    `pickup_method` is collect_from_previous or collect_from_storage,
    `return_method` is handover_to_next or return_to_storage.
    `storage` is the custodian to contact when either end goes through
    storage.
    """
    pickup_method: str
    return_method: str
    position: int
    total_in_chain: int
    previous: Optional[HandoverContact] = None
    next: Optional[HandoverContact] = None
    storage_location: str = ''
    storage: Optional[StorageContact] = None

    def to_dict(self) -> dict:
        return {
            'pickup_method': self.pickup_method,
            'return_method': self.return_method,
            'position': self.position,
            'total_in_chain': self.total_in_chain,
            'previous': self.previous.to_dict() if self.previous else None,
            'next': self.next.to_dict() if self.next else None,
            'storage_location': self.storage_location,
            'storage': self.storage.to_dict() if self.storage else None,
        }

    @property
    def neighbour_booking_ids(self) -> list:
        """Bookings on either side of this one, the holders a handover change affects"""
        return [
            contact.booking_id for contact in (self.previous, self.next)
            if contact is not None and contact.booking_id is not None
        ]


@dataclass(kw_only=True)
class BookingEvent(DomainEvent):
    """Common payload of every booking event"""
    booking_id: UUID
    reference: str = ''
    equipment_id: Optional[UUID] = None
    zone_id: Optional[int] = None
    requester_id: Optional[int] = None

    def payload(self) -> dict:
        """Event-specific fields handed to the notification sink"""
        return {}

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({
            'booking_id': str(self.booking_id),
            'reference': self.reference,
            'equipment_id': str(self.equipment_id) if self.equipment_id else None,
            'zone_id': self.zone_id,
            'requester_id': self.requester_id,
        })
        data.update(self.payload())
        return data


@dataclass(kw_only=True)
class BookingRequested(BookingEvent):
    """
    Event: A booking was created

    Created pending it is a request awaiting a manager. With auto-approval
    on it is already approved and the requester is told so directly.
    """
    pickup_at: datetime
    return_at: datetime
    auto_approved: bool = False

    @property
    def event_kind(self) -> str:
        return 'auto_approved' if self.auto_approved else 'received'

    def payload(self) -> dict:
        return {
            'pickup_at': self.pickup_at.isoformat(),
            'return_at': self.return_at.isoformat(),
            'auto_approved': self.auto_approved,
        }


@dataclass(kw_only=True)
class BookingApproved(BookingEvent):
    """
    Event: pending -> approved

    Carries the handover summary so the approval message can say who the
    requester collects the item from and hands it to.
    """
    approved_by: str
    auto_approved: bool = False
    handover: Optional[HandoverSummary] = None

    @property
    def event_kind(self) -> str:
        return 'auto_approved' if self.auto_approved else 'approved'

    def payload(self) -> dict:
        return {
            'approved_by': self.approved_by,
            'auto_approved': self.auto_approved,
            'handover': self.handover.to_dict() if self.handover else None,
        }


@dataclass(kw_only=True)
class BookingRejected(BookingEvent):
    """Event: pending -> cancelled with a rejection reason"""
    event_kind = 'rejected'

    reason: str
    rejected_by: str = ''
    handover: Optional[HandoverSummary] = None

    def payload(self) -> dict:
        return {
            'reason': self.reason,
            'rejected_by': self.rejected_by,
            'handover': self.handover.to_dict() if self.handover else None,
        }


@dataclass(kw_only=True)
class BookingCancelled(BookingEvent):
    """Event: live -> cancelled"""
    event_kind = 'cancelled'

    previous_status: str
    cancelled_by: str = ''
    reason: str = ''
    handover: Optional[HandoverSummary] = None

    def payload(self) -> dict:
        return {
            'previous_status': self.previous_status,
            'cancelled_by': self.cancelled_by,
            'reason': self.reason,
            'handover': self.handover.to_dict() if self.handover else None,
        }


@dataclass(kw_only=True)
class BookingStatusAdvanced(BookingEvent):
    """Event: approved -> confirmed -> picked_up -> in_use"""
    from_status: str
    to_status: str
    actor: str = ''

    @property
    def event_kind(self) -> str:
        return self.to_status

    def payload(self) -> dict:
        return {
            'from_status': self.from_status,
            'to_status': self.to_status,
            'actor': self.actor,
        }


@dataclass(kw_only=True)
class BookingRescheduled(BookingEvent):
    """Event: the pickup/return range of a live booking changed"""
    event_kind = 'rescheduled'

    previous_pickup_at: datetime
    previous_return_at: datetime
    pickup_at: datetime
    return_at: datetime
    actor: str = ''

    def payload(self) -> dict:
        return {
            'previous_pickup_at': self.previous_pickup_at.isoformat(),
            'previous_return_at': self.previous_return_at.isoformat(),
            'pickup_at': self.pickup_at.isoformat(),
            'return_at': self.return_at.isoformat(),
            'actor': self.actor,
        }


BOOKING_EVENTS = (
    BookingRequested,
    BookingApproved,
    BookingRejected,
    BookingCancelled,
    BookingStatusAdvanced,
    BookingRescheduled,
)

# Events after which the bookings either side of the subject hand over differently
HANDOVER_CHANGE_EVENTS = (
    BookingApproved,
    BookingRejected,
    BookingCancelled,
)
