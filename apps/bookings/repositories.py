"""
Django ORM repositories for the booking scheduler.

They translate between ORM rows and domain objects so the command and query
handlers never touch models directly.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from django.core.exceptions import ValidationError  # type: ignore
from django.db import OperationalError  # type: ignore
from django.db.models import F  # type: ignore

from apps.bookings.domain.entities import (
    AutomationSettings,
    Booking,
    BookingStatus,
    EquipmentSnapshot,
    RequesterInfo,
)
from apps.bookings.domain.events import StorageContact
from apps.bookings.domain.pricing import PriceQuote, PricingRule
from apps.bookings.models import AutomationSetting, EquipmentBooking
from apps.equipment.models import EquipmentItem, PricingRule as PricingRuleRow, StorageCustodian
from shared.domain.exceptions import NotFoundError, StaleScheduleError
from shared.domain.value_objects import BookingPeriod, Money
from shared.infrastructure.locking import lock_queryset_if_possible

logger = logging.getLogger(__name__)


def _lookup(queryset, pk):
    try:
        return queryset.filter(pk=pk).first()
    except (ValidationError, ValueError):
        return None


class DjangoEquipmentRepository:
    """Read access to equipment items plus the schedule version counter."""

    def get(self, equipment_id, lock: bool = False) -> EquipmentSnapshot:
        queryset = EquipmentItem.objects.all()
        if lock:
            queryset = lock_queryset_if_possible(queryset)
        item = _lookup(queryset, equipment_id)
        if item is None:
            raise NotFoundError(f"Equipment item {equipment_id} not found")
        return self.to_snapshot(item)

    @staticmethod
    def to_snapshot(item: EquipmentItem) -> EquipmentSnapshot:
        return EquipmentSnapshot(
            id=item.id,
            zone_id=item.zone_id,
            name=item.name,
            category=item.category,
            quantity=item.quantity,
            pricing_type=item.pricing_type,
            price_per_day=item.base_price_per_day,
            price_per_week=item.base_price_per_week,
            deposit=item.deposit_required,
            bond=item.bond_amount,
            requires_trailer=item.requires_trailer,
            storage_location=item.storage_location,
            is_active=item.is_active,
            schedule_version=item.schedule_version,
        )

    def bump_schedule_version(self, equipment_id: UUID, expected_version: int) -> int:
        """
        Conditional increment. Raises StaleScheduleError when another writer
        moved the version since it was read.
        """
        try:
            updated = EquipmentItem.objects.filter(
                pk=equipment_id,
                schedule_version=expected_version,
            ).update(schedule_version=F("schedule_version") + 1)
        except OperationalError as exc:
            logger.warning(f"Schedule version update for {equipment_id} failed: {exc}")
            raise StaleScheduleError(str(exc)) from exc

        if updated == 0:
            raise StaleScheduleError(
                f"Schedule of equipment {equipment_id} changed since version {expected_version}"
            )
        return expected_version + 1

    def list_pricing_rules(self, zone_id) -> List[PricingRule]:
        rows = PricingRuleRow.objects.filter(zone_id=zone_id, is_active=True).order_by("id")
        return [self.to_pricing_rule(row) for row in rows]

    @staticmethod
    def to_pricing_rule(row: PricingRuleRow) -> PricingRule:
        return PricingRule(
            id=row.id,
            zone_id=row.zone_id,
            equipment_id=row.equipment_id,
            category=row.category,
            club_name=row.club_name,
            price_per_day=row.price_per_day,
            price_per_week=row.price_per_week,
            discount_percentage=row.discount_percentage,
            minimum_charge=row.minimum_charge,
            valid_from=row.valid_from,
            valid_until=row.valid_until,
            is_active=row.is_active,
        )

    def get_storage_contact(self, equipment_id, zone_id) -> Optional[StorageContact]:
        """Active custodian of the item, else the zone-wide one, else None."""
        active = StorageCustodian.objects.filter(zone_id=zone_id, is_active=True)
        custodian = (
            active.filter(equipment_id=equipment_id).order_by("id").first()
            or active.filter(equipment__isnull=True).order_by("id").first()
        )
        if custodian is None:
            return None
        return StorageContact(
            name=custodian.name,
            role=custodian.role,
            email=custodian.email,
            phone=custodian.phone,
            address=custodian.storage_address,
            access_instructions=custodian.access_instructions,
            available_hours=custodian.available_hours,
        )


class DjangoBookingRepository:
    """Loads and stores Booking aggregates."""

    def get_by_id(self, booking_id, lock: bool = False) -> Booking:
        queryset = EquipmentBooking.objects.all()
        if lock:
            queryset = lock_queryset_if_possible(queryset)
        row = _lookup(queryset, booking_id)
        if row is None:
            raise NotFoundError(f"Booking {booking_id} not found")
        return self.to_entity(row)

    def list_for_equipment(self, equipment_id, live_only: bool = True,
                           window: Optional[BookingPeriod] = None) -> List[Booking]:
        queryset = EquipmentBooking.objects.filter(equipment_id=equipment_id)
        if live_only:
            queryset = queryset.filter(status__in=EquipmentBooking.LIVE_STATUSES)
        if window is not None:
            queryset = queryset.filter(pickup_at__lt=window.end, return_at__gt=window.start)
        return [self.to_entity(row) for row in queryset.order_by("pickup_at", "booking_reference")]

    def list_pending_for_zone(self, zone_id) -> List[Booking]:
        queryset = EquipmentBooking.objects.filter(
            zone_id=zone_id, status=EquipmentBooking.Status.PENDING
        ).order_by("pickup_at", "booking_reference")
        return [self.to_entity(row) for row in queryset]

    def save(self, booking: Booking) -> None:
        quote = booking.quote
        defaults = {
            "booking_reference": booking.reference,
            "equipment_id": booking.equipment_id,
            "zone_id": booking.zone_id,
            "requester_id": booking.requester.requester_id,
            "requester_name": booking.requester.name,
            "requester_email": booking.requester.email,
            "requester_phone": booking.requester.phone,
            "club_name": booking.requester.club_name,
            "event_name": booking.event_name,
            "pickup_at": booking.pickup_at,
            "return_at": booking.return_at,
            "status": booking.status.value,
            "approved_by": booking.approved_by or "",
            "approved_at": booking.approved_at,
            "auto_approved": booking.auto_approved,
            "rejection_reason": booking.rejection_reason,
            "cancelled_at": booking.cancelled_at,
            "cancelled_by": booking.cancelled_by,
            "created_at": booking.created_at,
            "updated_at": booking.updated_at,
        }
        if quote is not None:
            defaults.update({
                "currency": quote.currency,
                "duration_days": quote.duration_days,
                "subtotal": quote.subtotal.amount,
                "deposit": quote.deposit.amount,
                "discount": quote.discount.amount if quote.discount else Decimal("0.00"),
                "pricing_rule_id": quote.pricing_rule_id,
                "bond": quote.bond.amount,
                "total_price": quote.total.amount,
            })
        EquipmentBooking.objects.update_or_create(id=booking.id, defaults=defaults)

    @staticmethod
    def to_entity(row: EquipmentBooking) -> Booking:
        currency = row.currency or "AUD"
        return Booking(
            id=row.id,
            reference=row.booking_reference,
            equipment_id=row.equipment_id,
            zone_id=row.zone_id,
            requester=RequesterInfo(
                requester_id=row.requester_id,
                name=row.requester_name,
                email=row.requester_email,
                phone=row.requester_phone,
                club_name=row.club_name,
            ),
            period=BookingPeriod(row.pickup_at, row.return_at),
            event_name=row.event_name,
            status=BookingStatus(row.status),
            approved_by=row.approved_by or None,
            approved_at=row.approved_at,
            auto_approved=row.auto_approved,
            rejection_reason=row.rejection_reason,
            cancelled_at=row.cancelled_at,
            cancelled_by=row.cancelled_by,
            quote=PriceQuote(
                duration_days=row.duration_days,
                subtotal=Money(row.subtotal or Decimal("0"), currency),
                deposit=Money(row.deposit or Decimal("0"), currency),
                bond=Money(row.bond or Decimal("0"), currency),
                discount=Money(row.discount, currency) if row.discount else None,
                pricing_rule_id=row.pricing_rule_id,
            ),
            created_at=row.created_at,
            updated_at=row.updated_at,
        )


class DjangoAutomationSettingsRepository:
    """Per-zone automation flags."""

    def get_for_zone(self, zone_id) -> AutomationSettings:
        enabled = dict(
            AutomationSetting.objects.filter(zone_id=zone_id).values_list("setting_type", "enabled")
        )
        return AutomationSettings(
            auto_approval=enabled.get(AutomationSetting.SettingType.AUTO_APPROVAL.value, False),
            auto_email=enabled.get(AutomationSetting.SettingType.AUTO_EMAIL.value, False),
        )

    def list_for_zone(self, zone_id) -> List[AutomationSetting]:
        return list(AutomationSetting.objects.filter(zone_id=zone_id))

    def set(self, zone_id, setting_type: str, enabled: bool, updated_by: str = "") -> AutomationSettings:
        AutomationSetting.objects.update_or_create(
            zone_id=zone_id,
            setting_type=setting_type,
            defaults={"enabled": enabled, "updated_by": updated_by},
        )
        return self.get_for_zone(zone_id)
