"""
Booking Domain Events

Events raised by the submission flow, published on the application's
MessageBus once the booking row exists.
"""

from dataclasses import dataclass
from decimal import Decimal

from shared.domain.base import DomainEvent


@dataclass
class BookingSubmitted(DomainEvent):
    """
    Event: A booking row was inserted in the remote store

    Triggers:
    - Confirmation message to the guest
    """
    booking_id: str
    guest_id: str
    property_id: str
    total_amount: Decimal
    account_created: bool = False

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({
            'booking_id': self.booking_id,
            'guest_id': self.guest_id,
            'property_id': self.property_id,
            'total_amount': str(self.total_amount),
            'account_created': self.account_created,
        })
        return data

