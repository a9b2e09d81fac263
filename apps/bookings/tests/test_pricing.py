"""Hire price quotes."""

from __future__ import annotations

from decimal import Decimal

from apps.bookings.domain.pricing import PricingRule, quote_price, select_pricing_rule
from shared.domain.value_objects import BookingPeriod

from .fakes import OTHER_ZONE, ZONE, at, make_equipment


def test_flat_fee_is_charged_once():
    item = make_equipment(pricing_type="flat_fee", price_per_day=Decimal("120.00"))

    quote = quote_price(item, BookingPeriod(at(1), at(9)))

    assert quote.duration_days == 8
    assert quote.subtotal.amount == Decimal("120.00")


def test_per_day_uses_week_price_for_whole_weeks():
    item = make_equipment(
        price_per_day=Decimal("50.00"),
        price_per_week=Decimal("250.00"),
        deposit=Decimal("100.00"),
        bond=Decimal("200.00"),
    )

    quote = quote_price(item, BookingPeriod(at(1), at(10)))

    # 9 days: one week plus two days
    assert quote.subtotal.amount == Decimal("350.00")
    assert quote.total.amount == Decimal("650.00")
    assert quote.to_dict()["currency"] == "AUD"


def test_partial_days_round_up_without_week_price():
    item = make_equipment(price_per_day=Decimal("40.00"))

    quote = quote_price(item, BookingPeriod(at(1, 9), at(2, 17)), currency="NZD")

    assert quote.duration_days == 2
    assert quote.subtotal.amount == Decimal("80.00")
    assert quote.currency == "NZD"


# ===== Pricing rules =====

def _rule(rule_id, **fields):
    return PricingRule(id=rule_id, zone_id=fields.pop("zone_id", ZONE), **fields)


def test_most_specific_rule_wins():
    item = make_equipment()
    zone_wide = _rule(1, price_per_day=Decimal("45.00"))
    category = _rule(2, category="jumps", price_per_day=Decimal("40.00"))
    for_item = _rule(3, equipment_id=item.id, price_per_day=Decimal("35.00"))
    for_club = _rule(4, equipment_id=item.id, club_name="Pony Club", price_per_day=Decimal("30.00"))
    rules = [zone_wide, category, for_item, for_club]

    assert select_pricing_rule(rules, item, club_name=" pony club ") == for_club
    assert select_pricing_rule(rules, item, club_name="Riding Club") == for_item
    assert select_pricing_rule([zone_wide, category], item) == category
    assert select_pricing_rule([zone_wide], item) == zone_wide


def test_rules_that_do_not_apply_are_ignored():
    item = make_equipment()
    rules = [
        _rule(1, zone_id=OTHER_ZONE, price_per_day=Decimal("1.00")),
        _rule(2, category="tent", price_per_day=Decimal("2.00")),
        _rule(3, club_name="Other Club", price_per_day=Decimal("3.00")),
        _rule(4, is_active=False, price_per_day=Decimal("4.00")),
        _rule(5, valid_until=at(1), price_per_day=Decimal("5.00")),
        _rule(6, valid_from=at(20), price_per_day=Decimal("6.00")),
    ]

    assert select_pricing_rule(rules, item, club_name="Pony Club", at=at(5)) is None


def test_equal_rules_keep_the_first_listed():
    item = make_equipment()
    first = _rule(1, category="jumps", price_per_day=Decimal("20.00"))
    second = _rule(2, category="jumps", price_per_day=Decimal("10.00"))

    assert select_pricing_rule([first, second], item) == first


def test_rule_prices_and_discount():
    item = make_equipment(price_per_day=Decimal("50.00"), deposit=Decimal("100.00"))
    rule = _rule(7, price_per_day=Decimal("40.00"), discount_percentage=Decimal("12.5"))

    quote = quote_price(item, BookingPeriod(at(1), at(4)), rule=rule)

    # 3 days at 40.00 = 120.00, less 12.5% = 105.00
    assert quote.discount.amount == Decimal("15.00")
    assert quote.subtotal.amount == Decimal("105.00")
    assert quote.total.amount == Decimal("205.00")
    assert quote.pricing_rule_id == 7
    assert quote.to_dict()["discount"] == "15.00"


def test_minimum_charge_is_a_floor():
    item = make_equipment(price_per_day=Decimal("50.00"))
    rule = _rule(8, discount_percentage=Decimal("50"), minimum_charge=Decimal("80.00"))

    quote = quote_price(item, BookingPeriod(at(1), at(3)), rule=rule)

    assert quote.subtotal.amount == Decimal("80.00")


def test_rule_week_price_replaces_the_items():
    item = make_equipment(price_per_day=Decimal("50.00"), price_per_week=Decimal("300.00"))
    rule = _rule(9, price_per_week=Decimal("200.00"))

    quote = quote_price(item, BookingPeriod(at(1), at(9)), rule=rule)

    # one week plus one day
    assert quote.subtotal.amount == Decimal("250.00")


def test_quote_without_rule_has_no_discount():
    quote = quote_price(make_equipment(), BookingPeriod(at(1), at(2)))

    assert quote.discount is None
    assert quote.to_dict()["discount"] == "0.00"
    assert quote.pricing_rule_id is None
