"""
Price quotes for equipment hire.

Quotes are informational: they are stored on the booking and shown to the
requester, nothing is charged.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING, Iterable, Optional
from uuid import UUID

from shared.domain.base import ValueObject
from shared.domain.value_objects import BookingPeriod, Money

if TYPE_CHECKING:
    from apps.bookings.domain.entities import EquipmentSnapshot

PER_DAY = 'per_day'
FLAT_FEE = 'flat_fee'

CENT = Decimal('0.01')


@dataclass(frozen=True)
class PricingRule(ValueObject):
    """
    Zone price override.

    A rule narrows to one equipment item, one category and/or one club; a
    blank selector matches everything. Unset prices fall back to the item's
    own prices.
    """
    id: Optional[int]
    zone_id: int
    equipment_id: Optional[UUID] = None
    category: str = ''
    club_name: str = ''
    price_per_day: Optional[Decimal] = None
    price_per_week: Optional[Decimal] = None
    discount_percentage: Optional[Decimal] = None
    minimum_charge: Optional[Decimal] = None
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    is_active: bool = True

    def applies_to(self, equipment: 'EquipmentSnapshot', club_name: str = '',
                   at: Optional[datetime] = None) -> bool:
        if not self.is_active or self.zone_id != equipment.zone_id:
            return False
        if self.equipment_id is not None and self.equipment_id != equipment.id:
            return False
        if self.category and self.category != equipment.category:
            return False
        if self.club_name and self.club_name.strip().casefold() != (club_name or '').strip().casefold():
            return False
        if at is not None:
            if self.valid_from is not None and at < self.valid_from:
                return False
            if self.valid_until is not None and at > self.valid_until:
                return False
        return True

    @property
    def specificity(self) -> tuple:
        return (self.equipment_id is not None, bool(self.club_name), bool(self.category))


def select_pricing_rule(
    rules: Iterable[PricingRule],
    equipment: 'EquipmentSnapshot',
    club_name: str = '',
    at: Optional[datetime] = None,
) -> Optional[PricingRule]:
    """
    Most specific rule that applies: an item rule beats a category or
    zone-wide rule, a club rule beats an all-clubs rule. Ties keep the
    given order.
    """
    best = None
    for rule in rules:
        if not rule.applies_to(equipment, club_name, at):
            continue
        if best is None or rule.specificity > best.specificity:
            best = rule
    return best


@dataclass(frozen=True)
class PriceQuote(ValueObject):
    duration_days: int
    subtotal: Money
    deposit: Money
    bond: Money
    discount: Optional[Money] = None
    pricing_rule_id: Optional[int] = None

    @property
    def currency(self) -> str:
        return self.subtotal.currency

    @property
    def total(self) -> Money:
        return self.subtotal + self.deposit + self.bond

    def to_dict(self) -> dict:
        return {
            'currency': self.currency,
            'duration_days': self.duration_days,
            'subtotal': str(self.subtotal.amount),
            'discount': str(self.discount.amount) if self.discount else '0.00',
            'deposit': str(self.deposit.amount),
            'bond': str(self.bond.amount),
            'total': str(self.total.amount),
            'pricing_rule_id': self.pricing_rule_id,
        }


def quote_price(
    equipment: 'EquipmentSnapshot',
    period: BookingPeriod,
    currency: str = 'AUD',
    rule: Optional[PricingRule] = None,
) -> PriceQuote:
    """
    Flat-fee items cost their day price once. Per-day items cost whole weeks
    at the week price (when one is set) plus the remaining days at the day
    price.

    A pricing rule replaces the day and week prices it sets, then takes its
    discount percentage off the hire and lifts the result to its minimum
    charge. Deposit and bond always come from the item.
    """
    days = period.duration_days
    day_rate = rule.price_per_day if rule and rule.price_per_day is not None else equipment.price_per_day
    week_rate = rule.price_per_week if rule and rule.price_per_week is not None else equipment.price_per_week
    day_price = Money(day_rate or Decimal('0'), currency)

    if equipment.pricing_type == FLAT_FEE:
        subtotal = day_price
    elif week_rate:
        weeks, remaining_days = divmod(days, 7)
        subtotal = Money(week_rate, currency) * weeks + day_price * remaining_days
    else:
        subtotal = day_price * days

    discount = None
    if rule is not None:
        if rule.discount_percentage:
            off = (subtotal.amount * Decimal(rule.discount_percentage) / Decimal('100')).quantize(
                CENT, rounding=ROUND_HALF_UP
            )
            discount = Money(off, currency)
            subtotal = subtotal - discount
        if rule.minimum_charge is not None and subtotal.amount < rule.minimum_charge:
            subtotal = Money(rule.minimum_charge, currency)

    return PriceQuote(
        duration_days=days,
        subtotal=subtotal,
        deposit=Money(equipment.deposit or Decimal('0'), currency),
        bond=Money(equipment.bond or Decimal('0'), currency),
        discount=discount,
        pricing_rule_id=rule.id if rule is not None else None,
    )
