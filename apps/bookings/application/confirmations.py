"""
Booking confirmations

Turns BookingSubmitted events into the notice shown to the guest once the
booking row exists. The wording depends on whether the submission also
created the guest's account.

Usage:
    confirmations = BookingConfirmations()
    confirmations.subscribe(bus)
    ...
    for notice in confirmations.drain():
        show(notice.title, notice.description)
"""

from dataclasses import dataclass
import logging
from typing import List

from apps.bookings.domain.events import BookingSubmitted
from shared.domain.value_objects import Money

logger = logging.getLogger(__name__)

CONFIRMED_TITLE = 'Booking Confirmed!'
CONFIRMED_MESSAGE = 'Your reservation has been successfully created.'
ACCOUNT_CREATED_MESSAGE = (
    'Your account has been created and your reservation is confirmed! '
    'Please check your email to verify your account.'
)


@dataclass(frozen=True)
class ConfirmationNotice:
    booking_id: str
    property_id: str
    total: Money
    title: str
    description: str


class BookingConfirmations:
    """Collects one notice per submitted booking until the UI drains them"""

    def __init__(self):
        self._pending: List[ConfirmationNotice] = []

    def subscribe(self, bus) -> None:
        bus.subscribe(BookingSubmitted, self.on_booking_submitted)

    def on_booking_submitted(self, event: BookingSubmitted) -> None:
        notice = ConfirmationNotice(
            booking_id=event.booking_id,
            property_id=event.property_id,
            total=Money(event.total_amount),
            title=CONFIRMED_TITLE,
            description=ACCOUNT_CREATED_MESSAGE if event.account_created else CONFIRMED_MESSAGE,
        )
        self._pending.append(notice)
        logger.info("Booking submitted: %s for guest %s, total %s",
                    event.booking_id, event.guest_id, notice.total)

    @property
    def pending(self) -> List[ConfirmationNotice]:
        return list(self._pending)

    def drain(self) -> List[ConfirmationNotice]:
        notices, self._pending = self._pending, []
        return notices
