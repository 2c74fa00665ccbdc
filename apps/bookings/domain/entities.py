"""
Booking Domain Entities

Core entities of the booking flow:
- PropertySnapshot: Denormalized listing fields needed for pricing
- BookingDraft: The in-progress, not yet submitted booking
- DraftState: Empty / Partial / Complete
- GuestDetails: Guest form input (never persisted)
"""

import builtins
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping, Optional, Tuple

from shared.domain.base import ValueObject
from shared.domain.value_objects import DateRange, Money, to_decimal

DEFAULT_GUESTS = 2


class DraftState(Enum):
    """
    Booking draft states

    - EMPTY: no property captured yet
    - PARTIAL: property captured, dates incomplete
    - COMPLETE: property, both dates and guests set, nights > 0
    """
    EMPTY = 'empty'
    PARTIAL = 'partial'
    COMPLETE = 'complete'


@dataclass(frozen=True)
class PropertySnapshot(ValueObject):
    """
    Copy of the listing fields a draft needs for pricing

    Owned by the draft once captured; it is not refreshed from the catalog.
    """
    id: str
    title: str
    price_per_night: Decimal
    cleaning_fee: Decimal = Decimal('0')
    service_fee: Decimal = Decimal('0')
    max_guests: Optional[int] = None
    is_active: bool = True
    property_type: str = ''
    images: Tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, 'id', str(self.id))
        for name in ('price_per_night', 'cleaning_fee', 'service_fee'):
            object.__setattr__(self, name, to_decimal(getattr(self, name)))
        object.__setattr__(self, 'images', tuple(self.images or ()))
        if self.price_per_night < 0:
            raise ValueError("Nightly price cannot be negative")

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> 'PropertySnapshot':
        """Build a snapshot from a `properties` row or a navigation payload"""
        try:
            max_guests = record.get('max_guests')
            return cls(
                id=record['id'],
                title=record.get('title') or '',
                price_per_night=record['price_per_night'],
                cleaning_fee=record.get('cleaning_fee') or 0,
                service_fee=record.get('service_fee') or 0,
                max_guests=int(max_guests) if max_guests is not None else None,
                is_active=bool(record.get('is_active', True)),
                property_type=record.get('property_type') or '',
                images=record.get('images') or (),
            )
        except (KeyError, TypeError, ArithmeticError) as e:
            raise ValueError(f"Invalid property record: {e}") from e

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'title': self.title,
            'price_per_night': str(self.price_per_night),
            'cleaning_fee': str(self.cleaning_fee),
            'service_fee': str(self.service_fee),
            'max_guests': self.max_guests,
            'is_active': self.is_active,
            'property_type': self.property_type,
            'images': list(self.images),
        }


def _parse_date(value) -> Optional[date]:
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    # persisted values may be full ISO timestamps
    return datetime.fromisoformat(str(value)).date() if 'T' in str(value) else date.fromisoformat(str(value))


@dataclass(frozen=True)
class BookingDraft:
    """
    In-progress booking

    `nights` and `total_amount` are derived on every read from the dates
    and the property snapshot; they are never stored. Dates are calendar
    dates: a time of day is dropped so that nights do not change between
    the in-memory draft, its persisted copy and the booking row.
    """
    check_in: Optional[date] = None
    check_out: Optional[date] = None
    guests: int = DEFAULT_GUESTS
    property: Optional[PropertySnapshot] = None

    def __post_init__(self):
        object.__setattr__(self, 'check_in', _parse_date(self.check_in))
        object.__setattr__(self, 'check_out', _parse_date(self.check_out))
        if self.guests < 1:
            raise ValueError("Guests count must be at least 1")

    @builtins.property
    def nights(self) -> int:
        return DateRange.count_nights(self.check_in, self.check_out)

    @builtins.property
    def stay(self) -> Optional[DateRange]:
        if self.nights == 0:
            return None
        return DateRange(self.check_in, self.check_out)

    @builtins.property
    def subtotal(self) -> Money:
        if self.property is None:
            return Money.zero()
        return Money(self.property.price_per_night) * self.nights

    @builtins.property
    def total_amount(self) -> Decimal:
        """nights * price_per_night + cleaning_fee + service_fee, in cents"""
        if self.property is None or self.nights == 0:
            return Money.zero().quantized()
        total = self.subtotal + Money(self.property.cleaning_fee) + Money(self.property.service_fee)
        return total.quantized()

    @builtins.property
    def state(self) -> DraftState:
        if self.property is None:
            return DraftState.EMPTY
        if self.nights > 0 and self.guests >= 1:
            return DraftState.COMPLETE
        return DraftState.PARTIAL

    @builtins.property
    def is_complete(self) -> bool:
        return self.state is DraftState.COMPLETE

    def to_dict(self) -> dict:
        """Persistable form: dates as ISO strings, amounts as strings"""
        return {
            'check_in': self.check_in.isoformat() if self.check_in else None,
            'check_out': self.check_out.isoformat() if self.check_out else None,
            'guests': self.guests,
            'property': self.property.to_dict() if self.property else None,
            'nights': self.nights,
            'total_amount': str(self.total_amount),
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> 'BookingDraft':
        """
        Rehydrate a persisted draft

        Derived fields in the payload are ignored and recomputed.
        Raises ValueError on malformed payloads.
        """
        if not isinstance(payload, Mapping):
            raise ValueError("Draft payload must be a mapping")
        try:
            property_data = payload.get('property')
            return cls(
                check_in=_parse_date(payload.get('check_in')),
                check_out=_parse_date(payload.get('check_out')),
                guests=int(payload.get('guests') or DEFAULT_GUESTS),
                property=PropertySnapshot.from_record(property_data) if property_data else None,
            )
        except (TypeError, AttributeError) as e:
            raise ValueError(f"Invalid draft payload: {e}") from e


@dataclass(frozen=True)
class GuestDetails:
    """Guest form input; password only matters for unauthenticated submission"""
    first_name: str = ''
    last_name: str = ''
    email: str = ''
    phone: str = ''
    country: str = ''
    address: str = ''
    password: str = field(default='', repr=False)
