"""Booking state machine."""

from __future__ import annotations

import pytest

from apps.bookings.domain.entities import (
    ALLOWED_TRANSITIONS,
    AUTO_APPROVER,
    AutomationSettings,
    Booking,
    BookingStatus,
    RequesterInfo,
    generate_reference,
)
from apps.bookings.domain.events import (
    BookingApproved,
    BookingCancelled,
    BookingRejected,
    BookingRequested,
    BookingStatusAdvanced,
)
from shared.domain.exceptions import BookingValidationError, InvalidTransitionError
from shared.domain.value_objects import BookingPeriod

from .fakes import MEMBER, at, make_booking, make_equipment


@pytest.fixture
def item():
    return make_equipment()


def _request(item, automation, requester=None):
    return Booking.request(
        equipment=item,
        requester=requester or RequesterInfo(requester_id=MEMBER, email="rider@example.com"),
        period=BookingPeriod(at(1), at(3)),
        automation=automation,
    )


def test_request_without_automation_is_pending(item):
    booking = _request(item, AutomationSettings.disabled())

    assert booking.status == BookingStatus.PENDING
    assert booking.auto_approved is False
    assert booking.zone_id == item.zone_id
    [event] = booking.events
    assert isinstance(event, BookingRequested)
    assert event.event_kind == "received"


def test_request_with_auto_approval_starts_approved(item):
    booking = _request(item, AutomationSettings(auto_approval=True))

    assert booking.status == BookingStatus.APPROVED
    assert booking.auto_approved is True
    assert booking.approved_by == AUTO_APPROVER
    assert booking.approved_at is not None
    assert booking.events[0].event_kind == "auto_approved"


def test_auto_approval_needs_a_contactable_requester(item):
    booking = _request(
        item,
        AutomationSettings(auto_approval=True),
        requester=RequesterInfo(requester_id=MEMBER, email=""),
    )

    assert booking.status == BookingStatus.PENDING
    assert booking.auto_approved is False


def test_reference_format():
    reference = generate_reference(at(1))

    assert reference.startswith("EQ-2030-")
    assert len(reference) == len("EQ-2030-") + 6


def test_approve_sets_approver_and_emits_event(item):
    booking = make_booking(item, at(1), at(3), "EQ-2030-000001", status=BookingStatus.PENDING)

    booking.approve("100", at=at(1, 8))

    assert booking.status == BookingStatus.APPROVED
    assert booking.approved_by == "100"
    assert booking.approved_at == at(1, 8)
    [event] = booking.events
    assert isinstance(event, BookingApproved)
    assert event.event_kind == "approved"


def test_approving_an_approved_booking_is_an_invalid_transition(item):
    booking = make_booking(item, at(1), at(3), "EQ-2030-000001", status=BookingStatus.APPROVED)

    with pytest.raises(InvalidTransitionError) as excinfo:
        booking.approve("100")

    assert excinfo.value.current_status == "approved"
    assert excinfo.value.action == "approve"
    assert booking.events == []


def test_reject_requires_a_reason(item):
    booking = make_booking(item, at(1), at(3), "EQ-2030-000001", status=BookingStatus.PENDING)

    with pytest.raises(BookingValidationError) as excinfo:
        booking.reject("   ")

    assert excinfo.value.missing_fields == ["reason"]
    assert booking.status == BookingStatus.PENDING


def test_reject_cancels_with_reason(item):
    booking = make_booking(item, at(1), at(3), "EQ-2030-000001", status=BookingStatus.PENDING)

    booking.reject("Trailer is being serviced", rejected_by="100")

    assert booking.status == BookingStatus.CANCELLED
    assert booking.rejection_reason == "Trailer is being serviced"
    assert isinstance(booking.events[0], BookingRejected)


def test_only_pending_bookings_can_be_rejected(item):
    booking = make_booking(item, at(1), at(3), "EQ-2030-000001", status=BookingStatus.CONFIRMED)

    with pytest.raises(InvalidTransitionError):
        booking.reject("Too late")


@pytest.mark.parametrize("status", [
    BookingStatus.PENDING,
    BookingStatus.APPROVED,
    BookingStatus.CONFIRMED,
    BookingStatus.PICKED_UP,
    BookingStatus.IN_USE,
])
def test_every_live_status_can_be_cancelled(item, status):
    booking = make_booking(item, at(1), at(3), "EQ-2030-000001", status=status)

    booking.cancel(cancelled_by="200")

    assert booking.status == BookingStatus.CANCELLED
    assert booking.is_live is False
    assert booking.cancelled_by == "200"
    event = booking.events[0]
    assert isinstance(event, BookingCancelled)
    assert event.previous_status == status.value


def test_cancelled_is_terminal(item):
    booking = make_booking(item, at(1), at(3), "EQ-2030-000001", status=BookingStatus.CANCELLED)

    with pytest.raises(InvalidTransitionError) as excinfo:
        booking.cancel()

    assert excinfo.value.to_dict() == {
        "error": "invalid_transition",
        "detail": "Cannot cancel a booking in status 'cancelled'",
        "current_status": "cancelled",
        "action": "cancel",
    }
    assert ALLOWED_TRANSITIONS[BookingStatus.CANCELLED] == set()


def test_advance_walks_the_post_approval_states(item):
    booking = make_booking(item, at(1), at(3), "EQ-2030-000001", status=BookingStatus.APPROVED)

    for target in (BookingStatus.CONFIRMED, BookingStatus.PICKED_UP, BookingStatus.IN_USE):
        booking.advance(target, actor="100")

    assert booking.status == BookingStatus.IN_USE
    kinds = [event.event_kind for event in booking.events]
    assert kinds == ["confirmed", "picked_up", "in_use"]
    assert all(isinstance(event, BookingStatusAdvanced) for event in booking.events)


def test_advance_cannot_skip_states(item):
    booking = make_booking(item, at(1), at(3), "EQ-2030-000001", status=BookingStatus.APPROVED)

    with pytest.raises(InvalidTransitionError):
        booking.advance(BookingStatus.IN_USE)
    with pytest.raises(InvalidTransitionError):
        booking.advance(BookingStatus.APPROVED)


def test_reschedule_is_refused_once_the_item_is_out(item):
    booking = make_booking(item, at(1), at(3), "EQ-2030-000001", status=BookingStatus.PICKED_UP)

    with pytest.raises(InvalidTransitionError):
        booking.reschedule(BookingPeriod(at(4), at(6)))


def test_reschedule_moves_the_period(item):
    booking = make_booking(item, at(1), at(3), "EQ-2030-000001", status=BookingStatus.PENDING)

    booking.reschedule(BookingPeriod(at(4), at(6)), actor="200")

    assert (booking.pickup_at, booking.return_at) == (at(4), at(6))
    assert booking.events[0].event_kind == "rescheduled"
    assert booking.events[0].to_dict()["previous_pickup_at"] == at(1).isoformat()
