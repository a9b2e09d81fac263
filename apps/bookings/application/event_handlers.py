"""
Booking Event Handlers

Subscribers that run after a booking transaction commits. Notification is
fire-and-forget: a broker or delivery failure is logged and never reaches
the request that changed the booking.
"""

import logging

from apps.bookings.domain.events import BookingEvent

logger = logging.getLogger(__name__)


def notify_requester(event: BookingEvent):
    from apps.bookings.tasks import notify_booking_event

    try:
        notify_booking_event.delay(str(event.booking_id), event.event_kind, event.to_dict())
        logger.info(f"Queued {event.event_kind} notification for booking {event.reference}")
    except Exception as e:
        logger.error(
            f"Could not queue {event.event_kind} notification for booking {event.reference}: {e}",
            exc_info=True,
        )


def notify_handover_neighbours(event: BookingEvent):
    """Tell the holders before and after the booking that their handover changed."""
    from apps.bookings.tasks import notify_handover_change

    handover = getattr(event, 'handover', None)
    neighbour_ids = [str(booking_id) for booking_id in handover.neighbour_booking_ids] if handover else []
    if not neighbour_ids:
        return

    try:
        notify_handover_change.delay(str(event.booking_id), event.event_kind, neighbour_ids)
        logger.info(
            f"Queued handover change for {len(neighbour_ids)} neighbour(s) of booking {event.reference}"
        )
    except Exception as e:
        logger.error(
            f"Could not queue handover change for neighbours of booking {event.reference}: {e}",
            exc_info=True,
        )
