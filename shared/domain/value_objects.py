"""
Common Value Objects

- Money: Monetary amounts with currency
- BookingPeriod: Half-open pickup/return interval [start, end)
"""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal

from shared.domain.base import ValueObject
from shared.domain.exceptions import InvalidRangeError

SUPPORTED_CURRENCIES = ('AUD', 'NZD', 'USD', 'EUR', 'GBP')


@dataclass(frozen=True)
class Money(ValueObject):
    """
    Money value object

    Immutable, Decimal-backed, refuses to mix currencies.
    """
    amount: Decimal
    currency: str = 'AUD'

    def __post_init__(self):
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, 'amount', Decimal(str(self.amount)))
        if self.amount < 0:
            raise ValueError("Amount cannot be negative")
        if self.currency not in SUPPORTED_CURRENCIES:
            raise ValueError(f"Unsupported currency: {self.currency}")

    @classmethod
    def zero(cls, currency: str = 'AUD') -> 'Money':
        return cls(Decimal('0'), currency)

    def _check_currency(self, other: 'Money'):
        if not isinstance(other, Money):
            raise TypeError("Can only combine Money with Money")
        if self.currency != other.currency:
            raise ValueError(f"Cannot combine different currencies: {self.currency} and {other.currency}")

    def __add__(self, other: 'Money') -> 'Money':
        self._check_currency(other)
        return Money(self.amount + other.amount, self.currency)

    def __sub__(self, other: 'Money') -> 'Money':
        self._check_currency(other)
        return Money(self.amount - other.amount, self.currency)

    def __mul__(self, factor) -> 'Money':
        if not isinstance(factor, (int, Decimal)):
            raise TypeError("Can only multiply Money by int or Decimal")
        return Money(self.amount * Decimal(factor), self.currency)

    def __str__(self):
        return f"{self.amount:,.2f} {self.currency}"

    def __repr__(self):
        return f"Money({self.amount}, '{self.currency}')"


def periods_overlap(start1: datetime, end1: datetime, start2: datetime, end2: datetime) -> bool:
    """
    Half-open overlap test.

    Touching endpoints do not overlap: a return at 10:00 and a pickup at
    10:00 is a back-to-back handover, not a conflict.
    """
    return start1 < end2 and start2 < end1


@dataclass(frozen=True)
class BookingPeriod(ValueObject):
    """
    Pickup-to-return interval, start inclusive, end exclusive.

    Examples:
        - [Jan 1, Jan 5) overlaps [Jan 4, Jan 6) -> True
        - [Jan 1, Jan 5) overlaps [Jan 5, Jan 8) -> False (handover instant)
    """
    start: datetime
    end: datetime

    def __post_init__(self):
        if self.start is None or self.end is None:
            raise InvalidRangeError("Both pickup and return instants are required")
        if (self.start.tzinfo is None) != (self.end.tzinfo is None):
            raise InvalidRangeError("Cannot mix timezone-aware and naive instants")
        if self.end <= self.start:
            raise InvalidRangeError(
                f"Return ({self.end.isoformat()}) must be after pickup ({self.start.isoformat()})"
            )

    def overlaps(self, other: 'BookingPeriod') -> bool:
        if not isinstance(other, BookingPeriod):
            raise TypeError("Can only check overlap with another BookingPeriod")
        if self.is_aware != other.is_aware:
            raise InvalidRangeError(
                f"Cannot compare {self} with {other}: one is timezone-aware and the other is not"
            )
        return periods_overlap(self.start, self.end, other.start, other.end)

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant < self.end

    def clip(self, other: 'BookingPeriod') -> 'BookingPeriod | None':
        """Intersection with `other`, or None when they do not overlap"""
        if not self.overlaps(other):
            return None
        return BookingPeriod(max(self.start, other.start), min(self.end, other.end))

    @property
    def is_aware(self) -> bool:
        return self.start.tzinfo is not None

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @property
    def duration_days(self) -> int:
        """Whole days, partial days rounded up, never less than one"""
        return max(1, math.ceil(self.duration / timedelta(days=1)))

    def __str__(self):
        return f"{self.start:%d.%m.%Y %H:%M} - {self.end:%d.%m.%Y %H:%M}"
