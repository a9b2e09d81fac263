"""ORM repositories round-trip bookings and guard the schedule version."""

from __future__ import annotations

from decimal import Decimal

import pytest

from apps.bookings.domain.entities import AutomationSettings, Booking, BookingStatus, RequesterInfo
from apps.bookings.domain.pricing import quote_price, select_pricing_rule
from apps.bookings.models import EquipmentBooking
from apps.bookings.repositories import (
    DjangoAutomationSettingsRepository,
    DjangoBookingRepository,
    DjangoEquipmentRepository,
)
from apps.equipment.models import EquipmentItem, PricingRule, StorageCustodian
from apps.users.models import CustomUser, Zone
from shared.domain.exceptions import NotFoundError, StaleScheduleError
from shared.domain.value_objects import BookingPeriod

from .fakes import at

pytestmark = pytest.mark.django_db


@pytest.fixture
def zone():
    return Zone.objects.create(name="Central Coast", code="central-coast")


@pytest.fixture
def item(zone):
    return EquipmentItem.objects.create(
        zone=zone,
        name="Marquee 6x3",
        category=EquipmentItem.Category.MARQUEE,
        base_price_per_day=Decimal("80.00"),
        deposit_required=Decimal("50.00"),
    )


@pytest.fixture
def requester():
    return CustomUser.objects.create_user(email="member@example.com", password="MemberPass123")


def _request(item, requester, start, end, reference):
    equipment = DjangoEquipmentRepository().get(item.id)
    period = BookingPeriod(start, end)
    return Booking.request(
        equipment=equipment,
        requester=RequesterInfo(requester_id=requester.id, name="Member", email=requester.email),
        period=period,
        automation=AutomationSettings.disabled(),
        quote=quote_price(equipment, period),
        reference=reference,
        at=start,
    )


def test_booking_round_trip(item, requester):
    repo = DjangoBookingRepository()
    booking = _request(item, requester, at(1), at(4), "EQ-2030-ROUND1")

    repo.save(booking)
    loaded = repo.get_by_id(booking.id)

    assert loaded.reference == "EQ-2030-ROUND1"
    assert loaded.status == BookingStatus.PENDING
    assert loaded.period == BookingPeriod(at(1), at(4))
    assert loaded.requester.email == "member@example.com"
    assert loaded.quote.subtotal.amount == Decimal("240.00")
    assert loaded.quote.total.amount == Decimal("290.00")
    row = EquipmentBooking.objects.get(pk=booking.id)
    assert row.total_price == Decimal("290.00")


def test_list_for_equipment_skips_cancelled_and_filters_window(item, requester):
    repo = DjangoBookingRepository()
    kept = _request(item, requester, at(1), at(4), "EQ-2030-KEPT01")
    dropped = _request(item, requester, at(4), at(6), "EQ-2030-DROP01")
    dropped.cancel("someone", at=at(1))
    later = _request(item, requester, at(20), at(22), "EQ-2030-LATER1")
    for booking in (kept, dropped, later):
        repo.save(booking)

    assert [b.reference for b in repo.list_for_equipment(item.id)] == ["EQ-2030-KEPT01", "EQ-2030-LATER1"]
    assert len(repo.list_for_equipment(item.id, live_only=False)) == 3
    window = BookingPeriod(at(2), at(10))
    assert [b.reference for b in repo.list_for_equipment(item.id, window=window)] == ["EQ-2030-KEPT01"]


def test_unknown_or_malformed_ids_are_not_found():
    with pytest.raises(NotFoundError):
        DjangoBookingRepository().get_by_id("not-a-uuid")
    with pytest.raises(NotFoundError):
        DjangoEquipmentRepository().get("00000000-0000-0000-0000-000000000000")


def test_schedule_version_bump_is_conditional(item):
    repo = DjangoEquipmentRepository()

    assert repo.bump_schedule_version(item.id, 0) == 1
    with pytest.raises(StaleScheduleError):
        repo.bump_schedule_version(item.id, 0)

    item.refresh_from_db()
    assert item.schedule_version == 1


def test_automation_settings_default_off_and_update(zone):
    repo = DjangoAutomationSettingsRepository()

    assert repo.get_for_zone(zone.id) == AutomationSettings(auto_approval=False, auto_email=False)

    settings = repo.set(zone.id, "auto_email", True, updated_by="7")
    settings = repo.set(zone.id, "auto_email", True, updated_by="8")

    assert settings.auto_email is True
    assert settings.auto_approval is False
    [stored] = repo.list_for_zone(zone.id)
    assert stored.updated_by == "8"


def test_storage_custodian_prefers_the_item_over_the_zone(zone, item):
    repo = DjangoEquipmentRepository()
    other = EquipmentItem.objects.create(zone=zone, name="Trailer", category=EquipmentItem.Category.TRAILER)

    assert repo.get_storage_contact(item.id, zone.id) is None

    StorageCustodian.objects.create(zone=zone, name="Zone Keeper", phone="+61400000050")
    StorageCustodian.objects.create(zone=zone, equipment=item, name="Off Duty", is_active=False)
    assert repo.get_storage_contact(item.id, zone.id).name == "Zone Keeper"

    StorageCustodian.objects.create(
        zone=zone,
        equipment=item,
        name="Marquee Keeper",
        storage_address="4 Showground Rd",
        access_instructions="Gate code 2468",
    )
    contact = repo.get_storage_contact(item.id, zone.id)
    assert contact.name == "Marquee Keeper"
    assert contact.address == "4 Showground Rd"
    assert contact.access_instructions == "Gate code 2468"
    assert repo.get_storage_contact(other.id, zone.id).name == "Zone Keeper"


def test_pricing_rules_feed_the_quote_and_round_trip(item, requester):
    equipment_repo = DjangoEquipmentRepository()
    PricingRule.objects.create(zone=item.zone, category=EquipmentItem.Category.MARQUEE, discount_percentage=Decimal("25"))
    PricingRule.objects.create(zone=item.zone, price_per_day=Decimal("1.00"), is_active=False)

    equipment = equipment_repo.get(item.id)
    rules = equipment_repo.list_pricing_rules(item.zone_id)
    assert len(rules) == 1
    period = BookingPeriod(at(1), at(3))
    booking = Booking.request(
        equipment=equipment,
        requester=RequesterInfo(requester_id=requester.id, name="Member", email=requester.email),
        period=period,
        automation=AutomationSettings.disabled(),
        quote=quote_price(equipment, period, rule=select_pricing_rule(rules, equipment)),
        reference="EQ-2030-RULE01",
        at=at(1),
    )

    repo = DjangoBookingRepository()
    repo.save(booking)
    loaded = repo.get_by_id(booking.id)

    # two days at 80.00, less 25%
    assert loaded.quote.subtotal.amount == Decimal("120.00")
    assert loaded.quote.discount.amount == Decimal("40.00")
    assert loaded.quote.pricing_rule_id == rules[0].id
    row = EquipmentBooking.objects.get(pk=booking.id)
    assert row.discount == Decimal("40.00")
    assert row.pricing_rule_id == rules[0].id
