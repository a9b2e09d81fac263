"""Money and BookingPeriod value objects."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from shared.domain.exceptions import InvalidRangeError
from shared.domain.value_objects import BookingPeriod, Money

START = datetime(2030, 1, 1, 10, tzinfo=timezone.utc)


def period(days_from: float, days_to: float) -> BookingPeriod:
    return BookingPeriod(START + timedelta(days=days_from), START + timedelta(days=days_to))


def test_touching_periods_do_not_overlap():
    assert not period(0, 4).overlaps(period(4, 7))
    assert not period(4, 7).overlaps(period(0, 4))
    assert period(0, 4).overlaps(period(3, 5))
    assert period(0, 10).overlaps(period(2, 3))


@pytest.mark.parametrize("start, end", [(1, 1), (2, 1)])
def test_empty_or_inverted_period_is_rejected(start, end):
    with pytest.raises(InvalidRangeError):
        period(start, end)


def test_mixing_aware_and_naive_is_rejected():
    with pytest.raises(InvalidRangeError):
        BookingPeriod(START, datetime(2030, 1, 2))


def test_comparing_aware_with_naive_periods_is_an_invalid_range():
    naive = BookingPeriod(datetime(2030, 1, 1, 12), datetime(2030, 1, 2, 12))

    with pytest.raises(InvalidRangeError):
        period(0, 1).overlaps(naive)
    with pytest.raises(InvalidRangeError):
        naive.clip(period(0, 1))


def test_missing_instant_is_rejected():
    with pytest.raises(InvalidRangeError):
        BookingPeriod(START, None)


def test_clip_and_contains():
    window = period(2, 6)

    assert period(0, 4).clip(window) == period(2, 4)
    assert period(6, 8).clip(window) is None
    assert window.contains(START + timedelta(days=2))
    assert not window.contains(START + timedelta(days=6))


def test_duration_days_rounds_partial_days_up():
    assert period(0, 0.25).duration_days == 1
    assert period(0, 2).duration_days == 2
    assert period(0, 2.5).duration_days == 3


def test_money_arithmetic_and_currency_guard():
    total = Money(Decimal("10.50")) + Money(Decimal("4.50"))

    assert total == Money(Decimal("15.00"))
    assert Money(Decimal("5")) * 3 == Money(Decimal("15"))
    with pytest.raises(ValueError):
        Money(Decimal("1"), "AUD") + Money(Decimal("1"), "NZD")
    with pytest.raises(ValueError):
        Money(Decimal("-1"))
