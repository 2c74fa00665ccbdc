from datetime import date
from decimal import Decimal

import pytest
from asgiref.sync import async_to_sync

from shared.infrastructure.encryption import KeyProvider
from shared.infrastructure.secure_storage import (
    PLAIN_PREFIX,
    SecureStorage,
    StoragePersistenceFailed,
    integrity_digest,
)

PAYLOAD = {'check_in': '2024-06-01', 'guests': 2, 'property': {'id': 'prop-1'}}


def test_round_trip(storage, kv_backend):
    async_to_sync(storage.set_item)('booking_state', PAYLOAD)

    assert async_to_sync(storage.get_item)('booking_state') == PAYLOAD
    assert kv_backend.get('booking_state') != '{"check_in": "2024-06-01", "guests": 2, "property": {"id": "prop-1"}}'
    assert not kv_backend.get('booking_state').startswith(PLAIN_PREFIX)


def test_entries_layout(storage, kv_backend, clock):
    async_to_sync(storage.set_item)('booking_state', PAYLOAD, expiration_hours=1)

    assert kv_backend.get('booking_state_expiry') == str(clock.now + 3_600_000)
    assert kv_backend.get('booking_state_integrity') == integrity_digest(
        '{"check_in": "2024-06-01", "guests": 2, "property": {"id": "prop-1"}}'
    )


def test_dates_and_decimals_are_serialized(storage):
    async_to_sync(storage.set_item)('draft', {'check_in': date(2024, 6, 1), 'total': Decimal('520.00')})

    assert async_to_sync(storage.get_item)('draft') == {'check_in': '2024-06-01', 'total': '520.00'}


def test_missing_key_reads_as_none(storage):
    assert async_to_sync(storage.get_item)('nothing-here') is None


def test_tampered_integrity_purges_all_entries(storage, kv_backend):
    async_to_sync(storage.set_item)('booking_state', PAYLOAD)
    kv_backend.set('booking_state_integrity', '0' * 64)

    assert async_to_sync(storage.get_item)('booking_state') is None
    for key in SecureStorage.entry_keys('booking_state'):
        assert key not in kv_backend


def test_missing_integrity_purges(storage, kv_backend):
    async_to_sync(storage.set_item)('booking_state', PAYLOAD)
    kv_backend.delete('booking_state_integrity')

    assert async_to_sync(storage.get_item)('booking_state') is None
    assert 'booking_state' not in kv_backend


def test_expired_entry_is_purged(storage, kv_backend, clock):
    async_to_sync(storage.set_item)('booking_state', PAYLOAD, expiration_hours=24)
    clock.advance(24 * 3_600_000 + 1)

    assert async_to_sync(storage.get_item)('booking_state') is None
    for key in SecureStorage.entry_keys('booking_state'):
        assert key not in kv_backend


def test_unreadable_expiry_counts_as_expired(storage, kv_backend):
    async_to_sync(storage.set_item)('booking_state', PAYLOAD)
    kv_backend.set('booking_state_expiry', 'tomorrow')

    assert async_to_sync(storage.get_item)('booking_state') is None
    assert 'booking_state' not in kv_backend


def test_corrupt_ciphertext_is_purged(storage, kv_backend):
    async_to_sync(storage.set_item)('booking_state', PAYLOAD)
    kv_backend.set('booking_state', 'not-a-fernet-token')

    assert async_to_sync(storage.get_item)('booking_state') is None
    assert 'booking_state_integrity' not in kv_backend


@pytest.mark.parametrize("stored", [12345, ["gAAAA"], {"token": "gAAAA"}])
def test_non_text_ciphertext_is_purged(storage, kv_backend, stored):
    async_to_sync(storage.set_item)('booking_state', PAYLOAD)
    kv_backend.set('booking_state', stored)

    assert async_to_sync(storage.get_item)('booking_state') is None
    for key in storage.entry_keys('booking_state'):
        assert key not in kv_backend


def test_entry_written_with_another_key_is_purged(kv_backend, key_provider, clock):
    writer = SecureStorage(backend=kv_backend, key_provider=key_provider, clock=clock)
    async_to_sync(writer.set_item)('booking_state', PAYLOAD)

    other = KeyProvider(passphrase='rotated-passphrase', salt='test-salt', iterations=1_000, debug=False)
    reader = SecureStorage(backend=kv_backend, key_provider=other, clock=clock)

    assert async_to_sync(reader.get_item)('booking_state') is None
    assert 'booking_state' not in kv_backend


def test_remove_item_deletes_all_entries(storage, kv_backend):
    async_to_sync(storage.set_item)('booking_state', PAYLOAD)
    async_to_sync(storage.remove_item)('booking_state')

    for key in SecureStorage.entry_keys('booking_state'):
        assert key not in kv_backend


def test_unserializable_value_raises(storage, kv_backend):
    with pytest.raises(StoragePersistenceFailed):
        async_to_sync(storage.set_item)('booking_state', {'callback': object()})

    assert 'booking_state' not in kv_backend


def test_falls_back_to_plain_encoding_without_key(kv_backend, clock, caplog):
    provider = KeyProvider(passphrase='', salt='test-salt', iterations=1_000, debug=False)
    storage = SecureStorage(backend=kv_backend, key_provider=provider, clock=clock)

    with caplog.at_level('WARNING', logger='shared.infrastructure.secure_storage'):
        async_to_sync(storage.set_item)('booking_state', PAYLOAD)

    assert kv_backend.get('booking_state').startswith(PLAIN_PREFIX)
    assert storage.fallback_writes == 1
    assert 'storing plain encoding' in caplog.text
    assert async_to_sync(storage.get_item)('booking_state') == PAYLOAD
