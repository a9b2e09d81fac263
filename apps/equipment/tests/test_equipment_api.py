"""Integration tests for the equipment catalogue."""

from __future__ import annotations

from datetime import datetime, timezone as dt_timezone
from decimal import Decimal

from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.models import EquipmentBooking
from apps.equipment.models import EquipmentItem
from apps.users.models import CustomUser, Zone


def mar(day: int) -> datetime:
    return datetime(2031, 3, day, 8, tzinfo=dt_timezone.utc)


class EquipmentAPITests(APITestCase):
    def setUp(self) -> None:
        self.zone = Zone.objects.create(name="Mid North Coast", code="mid-north-coast")
        self.user = CustomUser.objects.create_user(email="member@example.com", password="MemberPass123")
        self.jumps = EquipmentItem.objects.create(
            zone=self.zone, name="Cross country jumps", category=EquipmentItem.Category.JUMPS
        )
        self.cones = EquipmentItem.objects.create(
            zone=self.zone,
            name="Arena cones",
            category=EquipmentItem.Category.ARENA_EQUIPMENT,
            quantity=2,
            base_price_per_day=Decimal("5.00"),
        )
        self.client.force_authenticate(self.user)

    def _hold(self, item, start, end, reference) -> EquipmentBooking:
        now = timezone.now()
        return EquipmentBooking.objects.create(
            booking_reference=reference,
            equipment=item,
            zone=self.zone,
            requester=self.user,
            pickup_at=start,
            return_at=end,
            status=EquipmentBooking.Status.APPROVED,
            created_at=now,
            updated_at=now,
        )

    def test_list_filters_by_category(self) -> None:
        response = self.client.get(reverse("equipment-list"), {"category": "jumps"})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row["name"] for row in response.data], ["Cross country jumps"])

    def test_anonymous_users_are_refused(self) -> None:
        self.client.force_authenticate(None)

        response = self.client.get(reverse("equipment-list"))

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_multi_unit_item_counts_concurrent_holds(self) -> None:
        self._hold(self.cones, mar(1), mar(5), "EQ-2031-CONE01")
        url = reverse("equipment-availability", args=[self.cones.id])
        window = {"start": mar(2).isoformat(), "end": mar(3).isoformat()}

        one_held = self.client.post(url, window, format="json")
        self._hold(self.cones, mar(2), mar(4), "EQ-2031-CONE02")
        both_held = self.client.post(url, window, format="json")

        self.assertTrue(one_held.data["available"])
        self.assertEqual(one_held.data["peak_concurrency"], 1)
        self.assertFalse(both_held.data["available"])
        self.assertEqual(both_held.data["quantity"], 2)
        self.assertEqual(len(both_held.data["conflicts"]), 2)

    def test_availability_for_unknown_item_is_404(self) -> None:
        url = reverse("equipment-availability", args=["2b0c5a44-3f0e-4a55-9df1-2f0f8d2b7c10"])

        response = self.client.post(url, {"start": mar(1).isoformat(), "end": mar(2).isoformat()}, format="json")

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["error"], "not_found")

    def test_inverted_availability_window(self) -> None:
        url = reverse("equipment-availability", args=[self.jumps.id])

        response = self.client.post(url, {"start": mar(3).isoformat(), "end": mar(1).isoformat()}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
