"""Notification services for booking events: in-app records and email."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from django.conf import settings  # type: ignore
from django.core.mail import send_mail  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.html import escape, strip_tags  # type: ignore

from shared.domain.exceptions import DomainError

from .models import Notification

if TYPE_CHECKING:  # pragma: no cover
    from apps.bookings.models import EquipmentBooking

logger = logging.getLogger(__name__)

# Emails for these kinds follow the zone's auto_email setting; every other
# kind is always emailed.
EMAIL_GATED_KINDS = frozenset({"received", "auto_approved", "approved"})

HANDOVER_CHANGED = "handover_changed"

PICKUP_INSTRUCTIONS = {
    "collect_from_previous": "Collect the item from the previous hirer",
    "collect_from_storage": "Collect the item from storage",
}
RETURN_INSTRUCTIONS = {
    "handover_to_next": "Hand the item over to the next hirer",
    "return_to_storage": "Return the item to storage",
}

TITLES = {
    "received": "Booking request {reference} received",
    "auto_approved": "Booking {reference} approved",
    "approved": "Booking {reference} approved",
    "rejected": "Booking {reference} declined",
    "cancelled": "Booking {reference} cancelled",
    "confirmed": "Booking {reference} confirmed",
    "picked_up": "Booking {reference} picked up",
    "in_use": "Booking {reference} in use",
    "rescheduled": "Booking {reference} rescheduled",
}

CHANGE_VERBS = {
    "approved": "approved",
    "auto_approved": "approved",
    "rejected": "declined",
    "cancelled": "cancelled",
}


# ============================================================================
# EMAIL
# ============================================================================

def send_email_notification(recipient_email: str, subject: str, html_message: str) -> bool:
    """
    Send one HTML email with a plain-text alternative.

    Returns:
        bool: True if the email was handed to the mail backend
    """
    try:
        send_mail(
            subject=subject,
            message=strip_tags(html_message),
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[recipient_email],
            html_message=html_message,
            fail_silently=False,
        )
        logger.info(f"Email sent successfully to {recipient_email}: {subject}")
        return True

    except Exception as e:
        logger.error(f"Failed to send email to {recipient_email}: {e}", exc_info=True)
        return False


# ============================================================================
# MESSAGE BUILDING
# ============================================================================

def _format_instant(value) -> str:
    return timezone.localtime(value).strftime("%d/%m/%Y %H:%M")


def _contact_line(contact: dict[str, Any]) -> str:
    who = contact.get("name") or contact.get("email") or contact.get("reference")
    parts = [who]
    if contact.get("club_name"):
        parts.append(f"({contact['club_name']})")
    if contact.get("role"):
        parts.append(f"({contact['role']})")
    if contact.get("phone"):
        parts.append(f"phone {contact['phone']}")
    if contact.get("email") and contact.get("email") != who:
        parts.append(contact["email"])
    return " ".join(str(part) for part in parts if part)


def describe_handover(handover: dict[str, Any] | None) -> list[str]:
    """Human-readable pickup and return instructions."""
    if not handover:
        return []

    lines = []
    pickup = PICKUP_INSTRUCTIONS.get(handover.get("pickup_method", ""), "")
    if handover.get("previous"):
        pickup = f"{pickup}: {_contact_line(handover['previous'])}"
    elif handover.get("storage_location"):
        pickup = f"{pickup}: {handover['storage_location']}"
    if pickup:
        lines.append(pickup)

    dropoff = RETURN_INSTRUCTIONS.get(handover.get("return_method", ""), "")
    if handover.get("next"):
        dropoff = f"{dropoff}: {_contact_line(handover['next'])}"
    elif handover.get("storage_location"):
        dropoff = f"{dropoff}: {handover['storage_location']}"
    if dropoff:
        lines.append(dropoff)

    storage = handover.get("storage")
    if storage:
        lines.append(f"Storage contact: {_contact_line(storage)}")
        if storage.get("available_hours"):
            lines.append(f"Available: {storage['available_hours']}")
        if storage.get("access_instructions"):
            lines.append(f"Access: {storage['access_instructions']}")
    return lines


def _current_handover(booking: "EquipmentBooking") -> dict[str, Any] | None:
    from apps.bookings.application.query_handlers import SchedulingQueries

    try:
        summary = SchedulingQueries().handover_summary(booking.id)
    except DomainError as e:
        logger.info(f"No handover for booking {booking.booking_reference}: {e.message}")
        return None
    return summary.to_dict()


def _details(booking: "EquipmentBooking") -> list[tuple[str, Any]]:
    details = [
        ("Reference", booking.booking_reference),
        ("Equipment", booking.equipment.name),
        ("Pickup", _format_instant(booking.pickup_at)),
        ("Return", _format_instant(booking.return_at)),
        ("Status", booking.get_status_display()),
    ]
    if booking.event_name:
        details.append(("Event", booking.event_name))
    return details


def render_html(name: str, notes: list[str], details: list[tuple[str, Any]]) -> str:
    """Email body; every value is HTML-escaped."""
    body = "".join(f"<p>{escape(note)}</p>" for note in notes)
    items = "".join(f"<li><strong>{label}:</strong> {escape(value)}</li>" for label, value in details)
    return f"""
    <html>
    <body>
        <h2>Hello {escape(name)},</h2>
        {body}
        <h3>Booking details:</h3>
        <ul>
            {items}
        </ul>
    </body>
    </html>
    """


def build_booking_message(
    booking: "EquipmentBooking", event_kind: str, payload: dict[str, Any] | None = None
) -> tuple[str, str]:
    """Title and HTML body for a booking event."""
    payload = payload or {}
    reference = booking.booking_reference
    title = TITLES.get(event_kind, "Booking {reference} updated").format(reference=reference)
    name = booking.requester_name or booking.requester_email or "there"

    notes: list[str] = []
    if event_kind == "received":
        notes.append("Your request has been received and is waiting for a zone manager.")
    elif event_kind in ("approved", "auto_approved"):
        notes.append("Your booking has been approved.")
        handover = payload.get("handover") or _current_handover(booking)
        notes.extend(describe_handover(handover))
        if booking.total_price:
            notes.append(f"Quoted total: {booking.total_price} {booking.currency}")
    elif event_kind == "rejected":
        notes.append(f"Reason: {payload.get('reason') or booking.rejection_reason}")
    elif event_kind == "cancelled":
        if payload.get("reason"):
            notes.append(f"Reason: {payload['reason']}")
    elif event_kind == "rescheduled":
        notes.append("The pickup and return times of your booking have changed.")

    return title, render_html(name, notes, _details(booking))


def build_handover_change_message(
    booking: "EquipmentBooking", changed_reference: str, event_kind: str
) -> tuple[str, str]:
    """Title and HTML body telling a neighbouring holder how their handover now runs."""
    title = f"Handover for booking {booking.booking_reference} changed"
    name = booking.requester_name or booking.requester_email or "there"
    verb = CHANGE_VERBS.get(event_kind, "updated")

    notes = [f"Booking {changed_reference} next to yours was {verb}, so your handover has changed."]
    notes.extend(describe_handover(_current_handover(booking)))
    return title, render_html(name, notes, _details(booking))


# ============================================================================
# DELIVERY
# ============================================================================

def create_in_app_notification(booking: "EquipmentBooking", event_kind: str, title: str, message: str):
    if booking.requester_id is None:
        return None
    return Notification.objects.create(
        user_id=booking.requester_id,
        booking=booking,
        event_kind=event_kind,
        title=title,
        message=strip_tags(message).strip(),
    )


def should_email(event_kind: str, auto_email: bool) -> bool:
    return auto_email or event_kind not in EMAIL_GATED_KINDS


def deliver_booking_event(booking_id, event_kind: str, payload: dict[str, Any] | None = None) -> dict[str, bool]:
    """
    Tell the requester about a booking event.

    Returns which channels were used. Failures are logged, never raised.
    """
    from apps.bookings.models import EquipmentBooking
    from apps.bookings.repositories import DjangoAutomationSettingsRepository

    result = {"in_app": False, "email": False}
    booking = EquipmentBooking.objects.select_related("equipment").filter(pk=booking_id).first()
    if booking is None:
        logger.warning(f"Booking {booking_id} vanished before its {event_kind} notification")
        return result

    title, html_message = build_booking_message(booking, event_kind, payload)

    try:
        result["in_app"] = create_in_app_notification(booking, event_kind, title, html_message) is not None
    except Exception as e:
        logger.error(f"Failed to store notification for {booking.booking_reference}: {e}", exc_info=True)

    auto_email = DjangoAutomationSettingsRepository().get_for_zone(booking.zone_id).auto_email
    if not booking.requester_email:
        logger.info(f"No email address for booking {booking.booking_reference}")
    elif should_email(event_kind, auto_email):
        result["email"] = send_email_notification(booking.requester_email, title, html_message)
    else:
        logger.info(f"Email for {event_kind} of {booking.booking_reference} skipped: auto email is off")

    return result


def deliver_handover_change(booking_id, event_kind: str, neighbour_ids: list[str]) -> dict[str, int]:
    """
    Send each live neighbour of `booking_id` its refreshed handover.

    These messages are always emailed, whatever the zone's auto_email flag.
    """
    from apps.bookings.models import EquipmentBooking

    result = {"notified": 0, "emailed": 0}
    changed = EquipmentBooking.objects.filter(pk=booking_id).values_list("booking_reference", flat=True).first()
    changed_reference = changed or str(booking_id)

    neighbours = EquipmentBooking.objects.select_related("equipment").filter(pk__in=neighbour_ids)
    for neighbour in neighbours:
        if not neighbour.is_live:
            logger.info(f"Booking {neighbour.booking_reference} is no longer live, no handover update")
            continue

        title, html_message = build_handover_change_message(neighbour, changed_reference, event_kind)
        try:
            if create_in_app_notification(neighbour, HANDOVER_CHANGED, title, html_message) is not None:
                result["notified"] += 1
        except Exception as e:
            logger.error(f"Failed to store handover update for {neighbour.booking_reference}: {e}", exc_info=True)

        if not neighbour.requester_email:
            logger.info(f"No email address for booking {neighbour.booking_reference}")
        elif send_email_notification(neighbour.requester_email, title, html_message):
            result["emailed"] += 1

    logger.info(
        f"Handover change after {event_kind} of {changed_reference}: "
        f"{result['notified']} notified, {result['emailed']} emailed"
    )
    return result
