"""
Submission outcomes

``BookingSubmissionFlow.submit`` never raises for domain failures; it
returns exactly one of these values:

    Succeeded | ValidationFailed | RateLimited | PaymentMethodRequired
    | DuplicateEmail | AccountCreationFailed | SubmissionFailed

Callers match on the type:

    match outcome:
        case Succeeded(summary=summary): ...
        case ValidationFailed(field=name, message=message): ...
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Union

from apps.bookings.domain.entities import PropertySnapshot


@dataclass(frozen=True)
class BookingSummary:
    booking_id: str
    guest_id: str
    property: PropertySnapshot
    check_in: date
    check_out: date
    guests: int
    nights: int
    total_amount: Decimal
    special_requests: str | None = None
    account_created: bool = False


@dataclass(frozen=True)
class Succeeded:
    summary: BookingSummary
    ok = True

    @property
    def message(self) -> str:
        if self.summary.account_created:
            return (
                "Your account has been created and your reservation is confirmed! "
                "Please check your email to verify your account."
            )
        return "Your reservation has been successfully created."


@dataclass(frozen=True)
class ValidationFailed:
    field: str
    message: str
    ok = False


@dataclass(frozen=True)
class RateLimited:
    key: str
    ok = False
    message = "Too many booking attempts. Please wait a few minutes and try again."


@dataclass(frozen=True)
class PaymentMethodRequired:
    ok = False
    message = "Please select a payment method to continue."


@dataclass(frozen=True)
class DuplicateEmail:
    email: str
    ok = False
    message = "An account with this email already exists. Please sign in instead."


@dataclass(frozen=True)
class AccountCreationFailed:
    message: str
    ok = False


@dataclass(frozen=True)
class SubmissionFailed:
    message: str
    ok = False


SubmissionOutcome = Union[
    Succeeded,
    ValidationFailed,
    RateLimited,
    PaymentMethodRequired,
    DuplicateEmail,
    AccountCreationFailed,
    SubmissionFailed,
]
