"""Celery tasks for the booking domain."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore

from apps.notifications.services import deliver_booking_event, deliver_handover_change

logger = logging.getLogger(__name__)


@shared_task(name="bookings.notify_booking_event", ignore_result=True)
def notify_booking_event(booking_id: str, event_kind: str, payload: dict | None = None) -> dict[str, bool]:
    """Deliver one booking event to its requester."""
    try:
        return deliver_booking_event(booking_id, event_kind, payload)
    except Exception as e:
        logger.error(f"Notification {event_kind} for booking {booking_id} failed: {e}", exc_info=True)
        return {"in_app": False, "email": False}


@shared_task(name="bookings.notify_handover_change", ignore_result=True)
def notify_handover_change(booking_id: str, event_kind: str, neighbour_ids: list[str]) -> dict[str, int]:
    """Send refreshed handover instructions to the bookings either side of `booking_id`."""
    try:
        return deliver_handover_change(booking_id, event_kind, neighbour_ids)
    except Exception as e:
        logger.error(f"Handover change after {event_kind} of booking {booking_id} failed: {e}", exc_info=True)
        return {"notified": 0, "emailed": 0}
