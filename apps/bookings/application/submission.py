"""
Booking Submission Flow

Orchestrates the final "Confirm and pay" step:

    Idle -> RateLimit gate -> Validating -> Payment method check
         -> AccountCheck -> AccountCreating (anonymous guests only)
         -> Submitting -> Succeeded | Failed

Every failure is returned as a SubmissionOutcome and surfaced once. Nothing
is retried here; a resubmission starts again at the rate limit gate.
"""

from dataclasses import dataclass
import logging

from apps.bookings.domain.entities import BookingDraft, GuestDetails
from apps.bookings.domain.events import BookingSubmitted
from apps.bookings.domain.outcomes import (
    AccountCreationFailed,
    BookingSummary,
    DuplicateEmail,
    PaymentMethodRequired,
    RateLimited,
    SubmissionFailed,
    SubmissionOutcome,
    Succeeded,
    ValidationFailed,
)
from apps.core.security import sanitize_email
from apps.core.validation import FieldRules, ValidationResult, create_validator
from shared.domain.value_objects import Money
from shared.infrastructure.remote_store import RemoteStoreError

logger = logging.getLogger(__name__)

ANONYMOUS_KEY = 'anonymous'

NAME_RULES = FieldRules(required=True, min_length=1, max_length=50)
PHONE_RULES = FieldRules(type='phone', max_length=20)
ADDRESS_RULES = FieldRules(max_length=200)
COUNTRY_RULES = FieldRules(max_length=100)
SPECIAL_REQUESTS_RULES = FieldRules(max_length=500)


@dataclass
class SubmitBookingCommand:
    """Everything the guest entered on the booking page"""
    draft: BookingDraft
    guest: GuestDetails
    payment_method: object = None
    special_requests: str = ''


class BookingSubmissionFlow:
    """
    Handler for the booking submission

    Args:
        remote_store: RemoteStore used for auth and the `bookings` table
        rate_limiter: callable(key) -> bool gating submission attempts
        draft_store: BookingDraftStore cleared after a successful insert
        bus: MessageBus receiving BookingSubmitted
    """

    def __init__(self, remote_store, rate_limiter, draft_store=None, bus=None):
        self.remote_store = remote_store
        self.rate_limiter = rate_limiter
        self.draft_store = draft_store
        self.bus = bus

    async def submit(
        self,
        draft: BookingDraft,
        guest: GuestDetails,
        payment_method=None,
        special_requests: str = '',
    ) -> SubmissionOutcome:
        return await self.handle(SubmitBookingCommand(draft, guest, payment_method, special_requests or ''))

    async def handle(self, command: SubmitBookingCommand) -> SubmissionOutcome:
        session = await self.remote_store.auth.get_session()
        authenticated = session is not None

        # 1. Rate limit gate, before anything else is looked at
        key = self.rate_limit_key(session, command.guest)
        if not self.rate_limiter(key):
            logger.warning("Booking submission rate limited for %s", key)
            return RateLimited(key=key)

        # 2. Guest details
        result = self.validate_guest(command.guest, command.special_requests, authenticated)
        if not result.is_valid:
            field_name, message = result.first_error()
            logger.info("Booking submission rejected: %s (%s)", field_name, message)
            return ValidationFailed(field=field_name, message=message)
        data = result.sanitized_data

        # 3. Payment method and draft
        if not command.payment_method:
            return PaymentMethodRequired()

        draft = command.draft
        if draft.property is None or not draft.property.is_active:
            return ValidationFailed(field='property', message='This property is not available for booking')
        if not draft.is_complete:
            return ValidationFailed(field='dates', message='Please select check-in and check-out dates')

        # 4. Account
        account_created = False
        if authenticated:
            guest_id = session.user.id
        else:
            try:
                user = await self.remote_store.auth.sign_up(
                    data['email'],
                    data['password'],
                    data['first_name'],
                    data['last_name'],
                )
            except RemoteStoreError as e:
                if e.is_duplicate_user:
                    logger.info("Account already exists for %s", data['email'])
                    return DuplicateEmail(email=data['email'])
                logger.error("Account creation failed: %s", e.message)
                return AccountCreationFailed(message=e.message or 'Failed to create account. Please try again.')

            guest_id = user.id
            account_created = True

        # 5. Booking row
        special_requests = data.get('special_requests') or None
        record = {
            'guest_id': guest_id,
            'property_id': draft.property.id,
            'check_in_date': draft.check_in.isoformat(),
            'check_out_date': draft.check_out.isoformat(),
            'guests': draft.guests,
            'total_amount': draft.total_amount,
            'nights': draft.nights,
            'special_requests': special_requests,
        }
        try:
            row = await self.remote_store.table('bookings').insert(record)
        except RemoteStoreError as e:
            logger.error("Booking insert failed for property %s: %s", draft.property.id, e.message)
            return SubmissionFailed(message=e.message or 'There was an error processing your booking. Please try again.')

        summary = BookingSummary(
            booking_id=str(row.get('id', '')),
            guest_id=guest_id,
            property=draft.property,
            check_in=draft.check_in,
            check_out=draft.check_out,
            guests=draft.guests,
            nights=draft.nights,
            total_amount=draft.total_amount,
            special_requests=special_requests,
            account_created=account_created,
        )
        logger.info(
            f"Booking {summary.booking_id} created for property {summary.property.id}, "
            f"guest {guest_id}, stay {draft.stay}, total {Money(summary.total_amount)}"
        )

        if self.draft_store is not None:
            self.draft_store.clear()
            await self.draft_store.flush()
        if self.bus is not None:
            self.bus.publish(BookingSubmitted(
                booking_id=summary.booking_id,
                guest_id=guest_id,
                property_id=summary.property.id,
                total_amount=summary.total_amount,
                account_created=account_created,
            ))

        return Succeeded(summary=summary)

    @staticmethod
    def rate_limit_key(session, guest: GuestDetails) -> str:
        if session is not None:
            return session.user.id
        return sanitize_email(guest.email) or ANONYMOUS_KEY

    @staticmethod
    def validate_guest(guest: GuestDetails, special_requests: str, authenticated: bool) -> ValidationResult:
        validator = create_validator()
        validator.validate_field('first_name', guest.first_name, NAME_RULES)
        validator.validate_field('last_name', guest.last_name, NAME_RULES)
        if authenticated:
            validator.validate_field('email', guest.email, FieldRules(type='email'))
        else:
            validator.validate_field('email', guest.email, FieldRules(required=True, type='email'))
            validator.validate_field('password', guest.password, FieldRules(required=True, type='password'))
        validator.validate_field('phone', guest.phone, PHONE_RULES)
        validator.validate_field('country', guest.country, COUNTRY_RULES)
        validator.validate_field('address', guest.address, ADDRESS_RULES)
        validator.validate_field('special_requests', special_requests, SPECIAL_REQUESTS_RULES)
        return validator.get_result()
