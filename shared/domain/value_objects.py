"""
Common Value Objects

Value objects used across the booking and payment domains:
- Money: Represents monetary amounts with currency
- DateRange: Represents a stay (check-in to check-out)
"""

import math
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP

from shared.domain.base import ValueObject

SUPPORTED_CURRENCIES = ('USD', 'EUR', 'GBP')
CENTS = Decimal('0.01')


def to_decimal(value) -> Decimal:
    """Coerce ints, floats, strings and None into a Decimal."""
    if value is None or value == '':
        return Decimal('0')
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


@dataclass(frozen=True)
class Money(ValueObject):
    """
    Money value object

    Represents a non-negative monetary amount with currency.
    Immutable and supports the arithmetic needed for price breakdowns.
    """
    amount: Decimal
    currency: str = 'USD'

    def __post_init__(self):
        object.__setattr__(self, 'amount', to_decimal(self.amount))
        if self.amount < 0:
            raise ValueError("Amount cannot be negative")
        if self.currency not in SUPPORTED_CURRENCIES:
            raise ValueError(f"Unsupported currency: {self.currency}")

    @classmethod
    def zero(cls, currency: str = 'USD') -> 'Money':
        return cls(Decimal('0'), currency)

    def __add__(self, other: 'Money') -> 'Money':
        if not isinstance(other, Money):
            raise TypeError("Can only add Money to Money")
        if self.currency != other.currency:
            raise ValueError(f"Cannot add different currencies: {self.currency} and {other.currency}")
        return Money(self.amount + other.amount, self.currency)

    def __mul__(self, factor) -> 'Money':
        if not isinstance(factor, (int, Decimal)):
            raise TypeError("Can only multiply Money by int or Decimal")
        return Money(self.amount * factor, self.currency)

    def quantized(self) -> Decimal:
        """Amount rounded to cents, as stored on booking rows."""
        return self.amount.quantize(CENTS, rounding=ROUND_HALF_UP)

    def __str__(self):
        return f"{self.quantized():,.2f} {self.currency}"


@dataclass(frozen=True)
class DateRange(ValueObject):
    """
    Date range value object

    Represents a stay from start_date (inclusive) to end_date (exclusive).
    """
    start_date: date
    end_date: date

    def __post_init__(self):
        if self.start_date >= self.end_date:
            raise ValueError(f"Start date ({self.start_date}) must be before end date ({self.end_date})")

    @staticmethod
    def count_nights(start: date | None, end: date | None) -> int:
        """
        Number of nights between two dates, rounded up

        Partial days (when datetimes are passed) count as a full night.
        Incomplete or inverted ranges have zero nights.
        """
        if start is None or end is None:
            return 0
        if isinstance(start, datetime) != isinstance(end, datetime):
            start = start.date() if isinstance(start, datetime) else start
            end = end.date() if isinstance(end, datetime) else end
        if isinstance(start, datetime):
            nights = math.ceil((end - start).total_seconds() / 86400)
        else:
            nights = (end - start).days
        return max(nights, 0)

    def __str__(self):
        return f"{self.start_date.isoformat()} - {self.end_date.isoformat()}"
