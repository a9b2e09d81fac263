"""
Scheduling rules for a single equipment item.

Everything here is a pure function of the item's bookings: availability,
the chronological chain and the handover neighbours of a booking. Nothing is
stored, so cancelling or moving one booking is reflected the next time any
of these is computed.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple
from uuid import UUID

from shared.domain.exceptions import NotFoundError
from shared.domain.value_objects import BookingPeriod
from apps.bookings.domain.entities import Booking
from apps.bookings.domain.events import HandoverContact, HandoverSummary, StorageContact

COLLECT_FROM_PREVIOUS = 'collect_from_previous'
COLLECT_FROM_STORAGE = 'collect_from_storage'
HANDOVER_TO_NEXT = 'handover_to_next'
RETURN_TO_STORAGE = 'return_to_storage'


def chain_sort_key(booking: Booking) -> Tuple:
    """Pickup instant first, booking reference breaks ties"""
    return (booking.pickup_at, booking.reference)


def live_bookings(bookings: Iterable[Booking], exclude_booking_id: Optional[UUID] = None) -> List[Booking]:
    return [
        booking for booking in bookings
        if booking.is_live and booking.id != exclude_booking_id
    ]


def peak_concurrency(periods: Sequence[BookingPeriod]) -> int:
    """
    Largest number of periods overlapping at one instant.

    At equal instants ends are processed before starts, so a return and a
    pickup at the same moment never count as simultaneous.
    """
    edges = []
    for period in periods:
        edges.append((period.start, 1))
        edges.append((period.end, -1))
    edges.sort(key=lambda edge: (edge[0], edge[1]))

    current = peak = 0
    for _, delta in edges:
        current += delta
        peak = max(peak, current)
    return peak


@dataclass(frozen=True)
class AvailabilityResult:
    period: BookingPeriod
    available: bool
    conflicts: Tuple[Booking, ...]
    peak_concurrency: int
    quantity: int = 1

    @property
    def conflicting_ids(self) -> List[UUID]:
        return [booking.id for booking in self.conflicts]


def check_availability(
    period: BookingPeriod,
    bookings: Iterable[Booking],
    quantity: int = 1,
    exclude_booking_id: Optional[UUID] = None,
) -> AvailabilityResult:
    """
    Decide whether `period` can take one more booking.

    Conflicts are the live bookings overlapping `period`, in chain order.
    The item is available while fewer than `quantity` of them are held at
    the same instant inside `period`.
    """
    conflicts = sorted(
        (
            booking for booking in live_bookings(bookings, exclude_booking_id)
            if booking.period.overlaps(period)
        ),
        key=chain_sort_key,
    )
    peak = peak_concurrency([booking.period.clip(period) for booking in conflicts])

    return AvailabilityResult(
        period=period,
        available=peak < max(quantity, 1),
        conflicts=tuple(conflicts),
        peak_concurrency=peak,
        quantity=quantity,
    )


def build_chain(bookings: Iterable[Booking], window: Optional[BookingPeriod] = None) -> List[Booking]:
    """Live bookings overlapping `window` (all of them without one) in chain order"""
    chain = [
        booking for booking in live_bookings(bookings)
        if window is None or booking.period.overlaps(window)
    ]
    chain.sort(key=chain_sort_key)
    return chain


def _contact(booking: Optional[Booking]) -> Optional[HandoverContact]:
    if booking is None:
        return None
    requester = booking.requester
    return HandoverContact(
        reference=booking.reference,
        booking_id=booking.id,
        name=requester.name,
        email=requester.email,
        phone=requester.phone,
        club_name=requester.club_name,
    )


@dataclass(frozen=True)
class HandoverView:
    previous: Optional[Booking]
    current: Booking
    next: Optional[Booking]
    position: int
    total_in_chain: int

    @property
    def is_first(self) -> bool:
        return self.previous is None

    @property
    def is_last(self) -> bool:
        return self.next is None

    @property
    def pickup_method(self) -> str:
        return COLLECT_FROM_STORAGE if self.previous is None else COLLECT_FROM_PREVIOUS

    @property
    def return_method(self) -> str:
        return RETURN_TO_STORAGE if self.next is None else HANDOVER_TO_NEXT

    @property
    def uses_storage(self) -> bool:
        return self.previous is None or self.next is None

    def summary(self, storage_location: str = '',
                storage: Optional[StorageContact] = None) -> HandoverSummary:
        """`storage` is only kept when one end of the booking goes through storage"""
        if storage is not None and storage.address and not storage_location:
            storage_location = storage.address
        return HandoverSummary(
            pickup_method=self.pickup_method,
            return_method=self.return_method,
            position=self.position,
            total_in_chain=self.total_in_chain,
            previous=_contact(self.previous),
            next=_contact(self.next),
            storage_location=storage_location,
            storage=storage if self.uses_storage else None,
        )


def resolve_handover(target: Booking, bookings: Iterable[Booking]) -> HandoverView:
    """
    Place `target` in the full live chain of its item.

    `bookings` is every booking of the item; the target must be live and
    among them.
    """
    chain = build_chain(bookings)
    for index, booking in enumerate(chain):
        if booking.id == target.id:
            return HandoverView(
                previous=chain[index - 1] if index > 0 else None,
                current=booking,
                next=chain[index + 1] if index + 1 < len(chain) else None,
                position=index + 1,
                total_in_chain=len(chain),
            )
    raise NotFoundError(f"Booking {target.reference or target.id} is not part of a live chain")
