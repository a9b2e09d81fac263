"""Integration tests for booking API endpoints."""

from __future__ import annotations

from datetime import datetime, timezone as dt_timezone
from decimal import Decimal

from django.core import mail
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.models import AutomationSetting, EquipmentBooking
from apps.equipment.models import EquipmentItem, StorageCustodian
from apps.notifications.models import Notification
from apps.users.models import CustomUser, Zone


def jan(day: int, hour: int = 10) -> datetime:
    return datetime(2031, 1, day, hour, tzinfo=dt_timezone.utc)


class BookingAPITests(APITestCase):
    """Covers requests, conflicts, approval, chains and handovers."""

    def setUp(self) -> None:
        self.zone = Zone.objects.create(name="Hunter Valley", code="hunter")
        self.other_zone = Zone.objects.create(name="Riverina", code="riverina")
        self.member = CustomUser.objects.create_user(
            email="rider@example.com",
            password="RiderPass123",
            phone="+61400000001",
            club_name="Maitland Pony Club",
        )
        self.neighbour = CustomUser.objects.create_user(
            email="neighbour@example.com",
            password="NeighbourPass123",
        )
        self.manager = CustomUser.objects.create_user(
            email="manager@example.com",
            password="ManagerPass123",
            role=CustomUser.RoleChoices.ZONE_MANAGER,
            zone=self.zone,
        )
        self.outsider = CustomUser.objects.create_user(
            email="outsider@example.com",
            password="OutsiderPass123",
            role=CustomUser.RoleChoices.ZONE_MANAGER,
            zone=self.other_zone,
        )
        self.item = EquipmentItem.objects.create(
            zone=self.zone,
            name="Show jumps set",
            category=EquipmentItem.Category.JUMPS,
            base_price_per_day=Decimal("50.00"),
            storage_location="Shed 3",
        )
        self.client.force_authenticate(self.member)
        self.list_url = reverse("booking-list")

    def _payload(self, start: datetime, end: datetime) -> dict[str, str]:
        return {
            "equipment": str(self.item.id),
            "pickup_at": start.isoformat(),
            "return_at": end.isoformat(),
            "event_name": "Spring rally",
        }

    def _stored(self, start, end, reference, status_value="approved", requester=None) -> EquipmentBooking:
        requester = requester or self.neighbour
        now = timezone.now()
        return EquipmentBooking.objects.create(
            booking_reference=reference,
            equipment=self.item,
            zone=self.zone,
            requester=requester,
            requester_name=requester.email.split("@")[0].title(),
            requester_email=requester.email,
            pickup_at=start,
            return_at=end,
            status=status_value,
            created_at=now,
            updated_at=now,
        )

    def _action(self, booking, name: str) -> str:
        return reverse(f"booking-{name}", args=[booking.id])

    # ===== Create =====

    def test_member_can_request_equipment(self) -> None:
        response = self.client.post(self.list_url, self._payload(jan(1), jan(3)), format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["status"], "pending")
        self.assertEqual(response.data["requester_email"], "rider@example.com")
        self.assertEqual(response.data["club_name"], "Maitland Pony Club")
        self.assertEqual(Decimal(response.data["subtotal"]), Decimal("100.00"))
        self.assertTrue(response.data["booking_reference"].startswith(f"EQ-{timezone.now().year}-"))
        self.item.refresh_from_db()
        self.assertEqual(self.item.schedule_version, 1)

    def test_overlapping_request_returns_conflict(self) -> None:
        first = self._stored(jan(1), jan(5), "EQ-2031-AAAAAA")
        second = self._stored(jan(5), jan(10), "EQ-2031-BBBBBB")

        response = self.client.post(self.list_url, self._payload(jan(4), jan(6)), format="json")

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["error"], "conflict")
        self.assertEqual(response.data["conflicting_booking_ids"], [str(first.id), str(second.id)])
        self.assertEqual(EquipmentBooking.objects.count(), 2)

    def test_back_to_back_request_is_accepted(self) -> None:
        self._stored(jan(1), jan(5), "EQ-2031-AAAAAA")

        response = self.client.post(self.list_url, self._payload(jan(5), jan(8)), format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_inverted_range_is_rejected(self) -> None:
        response = self.client.post(self.list_url, self._payload(jan(5), jan(2)), format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"], "invalid_range")

    def test_auto_approval_for_zone(self) -> None:
        AutomationSetting.objects.create(
            zone=self.zone, setting_type=AutomationSetting.SettingType.AUTO_APPROVAL, enabled=True
        )

        response = self.client.post(self.list_url, self._payload(jan(1), jan(3)), format="json")

        self.assertEqual(response.data["status"], "approved")
        self.assertTrue(response.data["auto_approved"])

    # ===== Availability =====

    def test_availability_lists_both_neighbours(self) -> None:
        first = self._stored(jan(1), jan(5), "EQ-2031-AAAAAA")
        second = self._stored(jan(5), jan(10), "EQ-2031-BBBBBB")
        url = reverse("equipment-availability", args=[self.item.id])

        busy = self.client.post(url, {"start": jan(4).isoformat(), "end": jan(6).isoformat()}, format="json")
        free = self.client.post(url, {"start": jan(10).isoformat(), "end": jan(15).isoformat()}, format="json")

        self.assertFalse(busy.data["available"])
        self.assertEqual([c["id"] for c in busy.data["conflicts"]], [str(first.id), str(second.id)])
        self.assertTrue(free.data["available"])
        self.assertEqual(free.data["conflicts"], [])

    # ===== Manager actions =====

    def test_manager_approves_pending_booking(self) -> None:
        booking = self._stored(jan(1), jan(3), "EQ-2031-AAAAAA", status_value="pending", requester=self.member)
        self.client.force_authenticate(self.manager)

        response = self.client.post(self._action(booking, "approve"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["status"], "approved")
        self.assertEqual(response.data["approved_by"], str(self.manager.id))

    def test_manager_from_another_zone_cannot_approve(self) -> None:
        booking = self._stored(jan(1), jan(3), "EQ-2031-AAAAAA", status_value="pending")
        self.client.force_authenticate(self.outsider)

        response = self.client.post(self._action(booking, "approve"))

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        booking.refresh_from_db()
        self.assertEqual(booking.status, "pending")

    def test_second_approval_is_refused(self) -> None:
        booking = self._stored(jan(1), jan(3), "EQ-2031-AAAAAA")
        self.client.force_authenticate(self.manager)

        response = self.client.post(self._action(booking, "approve"))

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["error"], "invalid_transition")
        self.assertEqual(response.data["current_status"], "approved")

    def test_reject_requires_reason(self) -> None:
        booking = self._stored(jan(1), jan(3), "EQ-2031-AAAAAA", status_value="pending")
        self.client.force_authenticate(self.manager)

        blank = self.client.post(self._action(booking, "reject"), {"reason": ""}, format="json")
        given = self.client.post(self._action(booking, "reject"), {"reason": "Item in repair"}, format="json")

        self.assertEqual(blank.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(blank.data["missing_fields"], ["reason"])
        self.assertEqual(given.data["status"], "cancelled")
        self.assertEqual(given.data["rejection_reason"], "Item in repair")

    def test_transition_moves_booking_forward(self) -> None:
        booking = self._stored(jan(1), jan(3), "EQ-2031-AAAAAA")
        self.client.force_authenticate(self.manager)

        response = self.client.post(self._action(booking, "transition"), {"status": "confirmed"}, format="json")

        self.assertEqual(response.data["status"], "confirmed")

    def test_requester_cancels_and_range_frees_up(self) -> None:
        booking = self._stored(jan(1), jan(5), "EQ-2031-AAAAAA", requester=self.member)

        cancelled = self.client.post(self._action(booking, "cancel"), {"reason": "Rained out"}, format="json")
        again = self.client.post(self._action(booking, "cancel"), format="json")
        retry = self.client.post(self.list_url, self._payload(jan(2), jan(4)), format="json")

        self.assertEqual(cancelled.data["status"], "cancelled")
        self.assertEqual(again.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(retry.status_code, status.HTTP_201_CREATED)

    def test_requester_reschedules_around_own_booking(self) -> None:
        booking = self._stored(jan(1), jan(5), "EQ-2031-AAAAAA", requester=self.member)

        response = self.client.post(
            self._action(booking, "reschedule"),
            {"pickup_at": jan(3).isoformat(), "return_at": jan(7).isoformat()},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["duration_days"], 4)

    # ===== Chain and handover =====

    def test_chain_lists_live_bookings_in_order(self) -> None:
        self._stored(jan(10), jan(12), "EQ-2031-CCCCCC", status_value="pending")
        self._stored(jan(1), jan(5), "EQ-2031-AAAAAA")
        self._stored(jan(5), jan(10), "EQ-2031-BBBBBB", status_value="cancelled")
        url = reverse("booking-chain", kwargs={"equipment_id": self.item.id})

        response = self.client.get(url, {"start": jan(1, 0).isoformat(), "end": jan(31).isoformat()})

        self.assertEqual(response.data["count"], 2)
        references = [entry["booking_reference"] for entry in response.data["bookings"]]
        self.assertEqual(references, ["EQ-2031-AAAAAA", "EQ-2031-CCCCCC"])
        self.assertTrue(response.data["bookings"][0]["is_first"])
        self.assertTrue(response.data["bookings"][1]["is_last"])

    def test_handover_skips_cancelled_neighbour(self) -> None:
        first = self._stored(jan(1), jan(5), "EQ-2031-AAAAAA")
        middle = self._stored(jan(5), jan(10), "EQ-2031-BBBBBB")
        last = self._stored(jan(10), jan(12), "EQ-2031-CCCCCC")
        self.client.force_authenticate(self.manager)

        before = self.client.get(self._action(last, "handover-chain"))
        self.client.post(self._action(middle, "cancel"), format="json")
        after = self.client.get(self._action(last, "handover-chain"))

        self.assertEqual(before.data["previous"]["id"], str(middle.id))
        self.assertEqual(after.data["previous"]["id"], str(first.id))
        self.assertEqual(after.data["position"], 2)
        self.assertEqual(after.data["pickup_method"], "collect_from_previous")
        self.assertEqual(after.data["return_method"], "return_to_storage")

    def test_handover_chain_is_for_zone_managers(self) -> None:
        booking = self._stored(jan(1), jan(5), "EQ-2031-AAAAAA", requester=self.member)

        response = self.client.get(self._action(booking, "handover-chain"))

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    # ===== Automation =====

    def test_enabling_auto_approval_processes_backlog(self) -> None:
        pending = self._stored(jan(1), jan(3), "EQ-2031-AAAAAA", status_value="pending")
        url = reverse("booking-automation", kwargs={"zone_id": self.zone.id})
        self.client.force_authenticate(self.manager)

        response = self.client.post(
            url, {"setting_type": "auto_approval", "enabled": True, "process_existing": True}, format="json"
        )
        shown = self.client.get(url)

        self.assertEqual(response.data["processed"], [pending.booking_reference])
        self.assertTrue(shown.data["auto_approval"])
        self.assertFalse(shown.data["auto_email"])
        pending.refresh_from_db()
        self.assertEqual(pending.status, "approved")
        self.assertTrue(pending.auto_approved)

    def test_members_cannot_see_automation(self) -> None:
        url = reverse("booking-automation", kwargs={"zone_id": self.zone.id})

        response = self.client.get(url)

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    # ===== Notifications =====

    def test_request_notification_respects_auto_email(self) -> None:
        with self.captureOnCommitCallbacks(execute=True):
            response = self.client.post(self.list_url, self._payload(jan(1), jan(3)), format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(len(mail.outbox), 0)
        notification = Notification.objects.get(user=self.member)
        self.assertEqual(notification.event_kind, "received")

    def test_approval_email_includes_handover(self) -> None:
        AutomationSetting.objects.create(
            zone=self.zone, setting_type=AutomationSetting.SettingType.AUTO_EMAIL, enabled=True
        )
        self._stored(jan(1), jan(5), "EQ-2031-AAAAAA")
        booking = self._stored(jan(5), jan(8), "EQ-2031-BBBBBB", status_value="pending", requester=self.member)
        self.client.force_authenticate(self.manager)

        with self.captureOnCommitCallbacks(execute=True):
            self.client.post(self._action(booking, "approve"))

        [message] = [m for m in mail.outbox if m.to == ["rider@example.com"]]
        self.assertIn("EQ-2031-BBBBBB", message.subject)
        self.assertIn("Collect the item from the previous hirer", message.body)
        self.assertIn("Return the item to storage: Shed 3", message.body)

    def test_cancellation_is_always_emailed(self) -> None:
        booking = self._stored(jan(1), jan(5), "EQ-2031-AAAAAA", requester=self.member)

        with self.captureOnCommitCallbacks(execute=True):
            self.client.post(self._action(booking, "cancel"), {"reason": "Rained out"}, format="json")

        self.assertEqual(len(mail.outbox), 1)
        self.assertIn("Rained out", mail.outbox[0].body)

    def test_cancellation_updates_both_neighbours(self) -> None:
        second = CustomUser.objects.create_user(email="second@example.com", password="SecondPass123")
        self._stored(jan(1), jan(5), "EQ-2031-AAAAAA")
        middle = self._stored(jan(5), jan(10), "EQ-2031-BBBBBB", requester=self.member)
        self._stored(jan(10), jan(12), "EQ-2031-CCCCCC", requester=second)

        with self.captureOnCommitCallbacks(execute=True):
            self.client.post(self._action(middle, "cancel"), {"reason": "Horse lame"}, format="json")

        recipients = sorted(address for message in mail.outbox for address in message.to)
        self.assertEqual(recipients, ["neighbour@example.com", "rider@example.com", "second@example.com"])
        first_update = next(m for m in mail.outbox if m.to == ["neighbour@example.com"])
        self.assertEqual(first_update.subject, "Handover for booking EQ-2031-AAAAAA changed")
        self.assertIn("EQ-2031-BBBBBB next to yours was cancelled", first_update.body)
        self.assertIn("Hand the item over to the next hirer: Second", first_update.body)
        self.assertEqual(Notification.objects.filter(event_kind="handover_changed").count(), 2)

    def test_handover_chain_names_the_storage_custodian(self) -> None:
        StorageCustodian.objects.create(
            zone=self.zone, name="Zone Keeper", phone="+61400000050", access_instructions="Key at the office"
        )
        first = self._stored(jan(1), jan(5), "EQ-2031-AAAAAA")
        last = self._stored(jan(5), jan(8), "EQ-2031-BBBBBB")
        self.client.force_authenticate(self.manager)

        response = self.client.get(self._action(first, "handover-chain"))

        self.assertEqual(response.data["storage"]["name"], "Zone Keeper")
        self.assertEqual(response.data["storage"]["access_instructions"], "Key at the office")
        self.assertEqual(response.data["next"]["id"], str(last.id))
