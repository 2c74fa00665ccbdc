from datetime import date
from decimal import Decimal

import pytest
from django.core.cache import caches

from apps.bookings.domain.entities import PropertySnapshot
from shared.infrastructure.encryption import KeyProvider
from shared.infrastructure.kv_store import KeyValueStore
from shared.infrastructure.remote_store import InMemoryRemoteStore
from shared.infrastructure.secure_storage import SecureStorage


class FakeClock:
    """Epoch-milliseconds clock that only moves when told to."""

    def __init__(self, now: int = 1_717_200_000_000):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def kv_backend(settings):
    backend = KeyValueStore(settings.SECURE_STORAGE_CACHE_ALIAS)
    caches[backend.alias].clear()
    yield backend
    caches[backend.alias].clear()


@pytest.fixture
def key_provider():
    return KeyProvider(passphrase="test-passphrase", salt="test-salt", iterations=1_000, debug=False)


@pytest.fixture
def storage(kv_backend, key_provider, clock):
    return SecureStorage(backend=kv_backend, key_provider=key_provider, clock=clock)


@pytest.fixture
def remote_store():
    return InMemoryRemoteStore()


@pytest.fixture
def beach_house():
    return PropertySnapshot(
        id="prop-1",
        title="Beach House",
        price_per_night=Decimal("150"),
        cleaning_fee=Decimal("50"),
        service_fee=Decimal("20"),
        max_guests=4,
        property_type="house",
        images=("https://img.example.com/1.jpg",),
    )


@pytest.fixture
def june_stay():
    return date(2024, 6, 1), date(2024, 6, 4)
