"""
Composition root

Creates the per-application service instances (storage key, rate limiter,
event bus and its confirmation subscriber, remote store) and wires the
booking components together. Tests build their own container with
controlled clocks and stores.

Usage:
    container = build_container()
    drafts = await container.open_draft_store()
    flow = container.submission_flow(drafts)
    outcome = await flow.submit(drafts.draft, guest, payment_method)
"""

from dataclasses import dataclass
from typing import Callable, Optional

from django.conf import settings

from apps.bookings.application.confirmations import BookingConfirmations
from apps.bookings.application.draft_store import BookingDraftStore
from apps.bookings.application.submission import BookingSubmissionFlow
from apps.core.rate_limit import RateLimiter, create_rate_limiter
from apps.payments.services import PaymentMethodService, WalletService
from apps.properties.catalog import PropertyCatalog
from shared.application.message_bus import MessageBus
from shared.infrastructure.encryption import KeyProvider
from shared.infrastructure.kv_store import KeyValueStore
from shared.infrastructure.remote_store import RemoteStore, build_remote_store
from shared.infrastructure.secure_storage import SecureStorage


@dataclass
class Container:
    bus: MessageBus
    confirmations: BookingConfirmations
    key_provider: KeyProvider
    storage: SecureStorage
    rate_limiter: RateLimiter
    remote_store: RemoteStore
    catalog: PropertyCatalog
    payment_methods: PaymentMethodService
    wallet: WalletService

    async def open_draft_store(self, storage_key: Optional[str] = None) -> BookingDraftStore:
        return await BookingDraftStore.open(self.storage, storage_key=storage_key)

    def submission_flow(self, draft_store: Optional[BookingDraftStore] = None) -> BookingSubmissionFlow:
        return BookingSubmissionFlow(
            self.remote_store,
            self.rate_limiter,
            draft_store=draft_store,
            bus=self.bus,
        )


def build_container(
    remote_store: Optional[RemoteStore] = None,
    backend: Optional[KeyValueStore] = None,
    clock: Optional[Callable[[], int]] = None,
) -> Container:
    """
    Build the application services

    Args:
        remote_store: defaults to the store configured in settings
        backend: key/value backend for SecureStorage
        clock: epoch-milliseconds clock shared by storage, limiter and wallet
    """
    bus = MessageBus()
    confirmations = BookingConfirmations()
    confirmations.subscribe(bus)

    key_provider = KeyProvider()
    remote_store = remote_store or build_remote_store()

    return Container(
        bus=bus,
        confirmations=confirmations,
        key_provider=key_provider,
        storage=SecureStorage(backend=backend, key_provider=key_provider, clock=clock),
        rate_limiter=create_rate_limiter(
            getattr(settings, 'BOOKING_SUBMIT_MAX_ATTEMPTS', 3),
            getattr(settings, 'BOOKING_SUBMIT_WINDOW_MS', 600_000),
            clock=clock,
        ),
        remote_store=remote_store,
        catalog=PropertyCatalog(remote_store),
        payment_methods=PaymentMethodService(remote_store),
        wallet=WalletService(remote_store, clock=clock),
    )
